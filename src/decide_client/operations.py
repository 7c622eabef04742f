"""Verified command operations.

Every configuration or state change follows one sequence:

1. Build the typed envelope for the payload under its registered identifier.
2. Send the request for the operation and component.
3. Require a bare acknowledgement.
4. For parameters only, read them back with ``GET_PARAMETERS`` and require
   the returned envelope to be byte-identical to the one sent. The
   acknowledgement only confirms receipt; the read-back confirms the
   controller installed what was meant.

Callers that watch state-change broadcasts must open their
:class:`~decide_client.transport.zmq_connection.StateSubscriber` *before*
calling a ``change_*`` function. The controller does not buffer broadcasts,
so a late subscriber misses the notification.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import zmq
from google.protobuf.message import Message

from .errors import ProtocolMismatch
from .models import house_light, peckboard, sound_alsa, stepper_motor
from .protocol.envelope import OperationKind, TypedEnvelope, build_envelope, build_request
from .protocol.parser import Ack, ParamsReply, ReplyResult
from .registry import (
    HOUSE_LIGHT_PARAMS,
    HOUSE_LIGHT_STATE,
    KEY_PARAMS,
    LED_LOCATIONS,
    LED_PARAMS,
    LED_STATE,
    SOUND_ALSA_PARAMS,
    SOUND_ALSA_STATE,
    STEPPER_PARAMS,
    STEPPER_STATE,
    type_id_for,
)
from .transport.zmq_connection import REQ_ENDPOINT, send

logger = logging.getLogger(__name__)

HOUSE_LIGHT = "house-light"
PECK_KEYS = "peck-keys"
STEPPER_MOTOR = "stepper-motor"
SOUND_ALSA = "sound-alsa"


def _check_schema(type_id: str, payload: Message) -> None:
    registered = type_id_for(payload)
    if registered != type_id:
        raise ValueError(
            f"{payload.DESCRIPTOR.full_name} is registered as '{registered}', "
            f"not '{type_id}'"
        )


def _expect_ack(result: ReplyResult, op: OperationKind, component: str) -> None:
    if not isinstance(result, Ack):
        raise ProtocolMismatch(
            f"{op.name} on '{component}' was not acknowledged",
            expected=Ack(),
            actual=result,
        )


# ─── GENERIC OPERATIONS ──────────────────────────────────────────────

def get_parameters(
    component: str,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Read the parameters currently installed on ``component``."""
    request = build_request(OperationKind.GET_PARAMETERS, component)
    result = send(request, endpoint, context)
    if not isinstance(result, ParamsReply):
        raise ProtocolMismatch(
            f"GET_PARAMETERS on '{component}' did not return parameters",
            expected=ParamsReply,
            actual=result,
        )
    return result.envelope


def set_parameters(
    component: str,
    type_id: str,
    params: Message,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Install ``params`` on ``component`` and verify them by reading back.

    Returns:
        The envelope that was set and read back.

    Raises:
        ProtocolMismatch: If the set is not acknowledged or the read-back
            envelope differs from the one sent.
        ValueError: If ``params`` is not the schema ``type_id`` names.
    """
    _check_schema(type_id, params)
    envelope = build_envelope(type_id, params)
    request = build_request(OperationKind.SET_PARAMETERS, component, envelope)
    _expect_ack(send(request, endpoint, context), request.op, component)

    installed = get_parameters(component, endpoint, context)
    if installed != envelope:
        raise ProtocolMismatch(
            f"Parameters read back from '{component}' differ from those set",
            expected=envelope,
            actual=installed,
        )
    logger.info("Parameters %s verified on %s", type_id, component)
    return envelope


def change_state(
    component: str,
    type_id: str,
    state: Message,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> None:
    """Push a runtime state change to ``component``.

    Sends exactly one request; a bare acknowledgement is the only success.
    """
    _check_schema(type_id, state)
    envelope = build_envelope(type_id, state)
    request = build_request(OperationKind.CHANGE_STATE, component, envelope)
    _expect_ack(send(request, endpoint, context), request.op, component)
    logger.info("State %s accepted by %s", type_id, component)


# ─── PARAMETERS ──────────────────────────────────────────────────────

def set_house_light_params(
    interval: int = 300,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Set the house light's clock interval.

    Args:
        interval: Seconds between brightness updates. 300 is typical.
    """
    params = house_light.Params(clock_interval=interval)
    return set_parameters(HOUSE_LIGHT, HOUSE_LIGHT_PARAMS, params, endpoint, context)


def set_led_params(
    locations: Iterable[str] = LED_LOCATIONS,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> list[TypedEnvelope]:
    """Set (empty) parameters on each peckboard LED location."""
    return [
        set_parameters(location, LED_PARAMS, peckboard.LedParams(), endpoint, context)
        for location in locations
    ]


def set_key_params(
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Set (empty) parameters on the peckboard keys."""
    return set_parameters(PECK_KEYS, KEY_PARAMS, peckboard.KeyParams(), endpoint, context)


def set_stepper_params(
    timeout: int = 1000,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Set how long the stepper motor runs after one signal.

    Args:
        timeout: Run duration in ms. 1000 is typical.
    """
    if timeout < 0:
        raise ValueError(f"Timeout must be non-negative, got {timeout}")
    params = stepper_motor.Params(timeout=timeout)
    return set_parameters(STEPPER_MOTOR, STEPPER_PARAMS, params, endpoint, context)


def set_playback_params(
    audio_dir: str = "",
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> TypedEnvelope:
    """Set the audio playback parameters."""
    params = sound_alsa.Params(audio_dir=audio_dir)
    return set_parameters(SOUND_ALSA, SOUND_ALSA_PARAMS, params, endpoint, context)


# ─── STATE CHANGES ───────────────────────────────────────────────────

def change_house_light_state(
    switch: bool,
    light_override: bool,
    fake_clock: bool,
    brightness: int,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> None:
    """Change the house light's state.

    Args:
        switch: Light on or off.
        light_override: Hold ``brightness`` instead of following the clock.
        fake_clock: Run the light on a simulated clock.
        brightness: Level to hold when overriding the clock.
    """
    state = house_light.State(
        switch=switch,
        light_override=light_override,
        fake_clock=fake_clock,
        brightness=brightness,
    )
    change_state(HOUSE_LIGHT, HOUSE_LIGHT_STATE, state, endpoint, context)


def change_led_state(
    location: str,
    led_state: str,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> None:
    """Change one peckboard LED.

    Args:
        location: LED component, e.g. ``"peck-leds-left"``.
        led_state: Color/pattern name understood by the controller.
    """
    state = peckboard.LedState(led_state=led_state)
    change_state(location, LED_STATE, state, endpoint, context)


def change_stepper_state(
    switch: bool,
    on: bool,
    direction: bool,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> None:
    """Change the stepper motor's state."""
    state = stepper_motor.State(switch=switch, on=on, direction=direction)
    change_state(STEPPER_MOTOR, STEPPER_STATE, state, endpoint, context)


def change_playback_state(
    audio_id: str,
    playback: int,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> None:
    """Start, stop or advance audio playback.

    Args:
        audio_id: Stimulus identifier.
        playback: Playback command code.
    """
    state = sound_alsa.State(audio_id=audio_id, playback=playback)
    change_state(SOUND_ALSA, SOUND_ALSA_STATE, state, endpoint, context)
