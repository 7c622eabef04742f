"""Type-identifier registry shared with the controller.

Each payload schema has one fixed identifier. The controller keeps the same
table; an identifier that names the wrong schema is only noticed when some
receiver tries to decode the bytes, so both sides must agree out of band.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.protobuf.message import Message

from .errors import DecodeError, RegistryError
from .models import house_light, peckboard, sound_alsa, stepper_motor
from .protocol.envelope import TypedEnvelope

logger = logging.getLogger(__name__)

TYPE_URL_PREFIX = "melizalab.org/proto/"

HOUSE_LIGHT_PARAMS = TYPE_URL_PREFIX + "house_light_params"
HOUSE_LIGHT_STATE = TYPE_URL_PREFIX + "house_light_state"
LED_PARAMS = TYPE_URL_PREFIX + "led_params"
LED_STATE = TYPE_URL_PREFIX + "led_state"
KEY_PARAMS = TYPE_URL_PREFIX + "key_params"
KEY_STATE = TYPE_URL_PREFIX + "key_state"
STEPPER_PARAMS = TYPE_URL_PREFIX + "stepper_params"
STEPPER_STATE = TYPE_URL_PREFIX + "stepper_state"
SOUND_ALSA_PARAMS = TYPE_URL_PREFIX + "sound_alsa_params"
SOUND_ALSA_STATE = TYPE_URL_PREFIX + "sound_alsa_state"

REGISTRY: dict[str, type[Message]] = {
    HOUSE_LIGHT_PARAMS: house_light.Params,
    HOUSE_LIGHT_STATE: house_light.State,
    LED_PARAMS: peckboard.LedParams,
    LED_STATE: peckboard.LedState,
    KEY_PARAMS: peckboard.KeyParams,
    KEY_STATE: peckboard.KeyState,
    STEPPER_PARAMS: stepper_motor.Params,
    STEPPER_STATE: stepper_motor.State,
    SOUND_ALSA_PARAMS: sound_alsa.Params,
    SOUND_ALSA_STATE: sound_alsa.State,
}

# Component identifiers of the reference deployment, with the
# (parameters, state) type identifiers each one speaks.
LED_LOCATIONS = ("peck-leds-left", "peck-leds-center", "peck-leds-right")

COMPONENT_SCHEMAS: dict[str, tuple[str, str]] = {
    "house-light": (HOUSE_LIGHT_PARAMS, HOUSE_LIGHT_STATE),
    **{location: (LED_PARAMS, LED_STATE) for location in LED_LOCATIONS},
    "peck-keys": (KEY_PARAMS, KEY_STATE),
    "stepper-motor": (STEPPER_PARAMS, STEPPER_STATE),
    "sound-alsa": (SOUND_ALSA_PARAMS, SOUND_ALSA_STATE),
}


def message_class(type_id: str) -> type[Message]:
    """Look up the message class for a type identifier."""
    try:
        return REGISTRY[type_id]
    except KeyError:
        raise DecodeError(f"Unknown type identifier '{type_id}'") from None


def type_id_for(message: Message) -> str:
    """Reverse lookup: the identifier registered for a message's schema."""
    for type_id, cls in REGISTRY.items():
        if isinstance(message, cls):
            return type_id
    raise RegistryError(
        f"No type identifier registered for {message.DESCRIPTOR.full_name}"
    )


def decode_envelope(envelope: TypedEnvelope) -> Message:
    """Decode an envelope's payload with the schema its identifier names.

    Raises:
        DecodeError: If the identifier is unknown or the bytes do not parse.
    """
    cls = message_class(envelope.type_id)
    try:
        return cls.FromString(envelope.payload)
    except ProtobufDecodeError as e:
        raise DecodeError(
            f"Payload does not decode as {envelope.type_id}: {e}"
        ) from e


def check_registry(components: Iterable[str] | None = None) -> None:
    """Verify every component the client drives has both schemas registered.

    Args:
        components: Component identifiers to check. Defaults to every
            component of the reference deployment.

    Raises:
        RegistryError: Listing each component and identifier that is missing.
    """
    if components is None:
        components = COMPONENT_SCHEMAS
    missing: list[str] = []
    for component in components:
        if component not in COMPONENT_SCHEMAS:
            missing.append(f"{component}: no schemas known")
            continue
        for type_id in COMPONENT_SCHEMAS[component]:
            if type_id not in REGISTRY:
                missing.append(f"{component}: {type_id}")
    if missing:
        raise RegistryError("Incomplete schema registry: " + "; ".join(missing))
    logger.debug("Schema registry covers %d type identifiers", len(REGISTRY))
