"""Tests for the type-identifier registry."""

import pytest

from decide_client.errors import DecodeError, RegistryError
from decide_client.models import house_light, peckboard, sound_alsa, stepper_motor
from decide_client.protocol.envelope import TypedEnvelope, build_envelope
from decide_client import registry
from decide_client.registry import (
    COMPONENT_SCHEMAS,
    HOUSE_LIGHT_PARAMS,
    HOUSE_LIGHT_STATE,
    KEY_PARAMS,
    KEY_STATE,
    LED_PARAMS,
    LED_STATE,
    REGISTRY,
    SOUND_ALSA_PARAMS,
    SOUND_ALSA_STATE,
    STEPPER_PARAMS,
    STEPPER_STATE,
    check_registry,
    decode_envelope,
    type_id_for,
)


def test_identifiers_are_unique():
    assert len(set(REGISTRY)) == len(REGISTRY)
    assert len(set(REGISTRY.values())) == len(REGISTRY)


def test_identifier_strings():
    """Identifiers must match the controller's table exactly."""
    assert HOUSE_LIGHT_PARAMS == "melizalab.org/proto/house_light_params"
    assert STEPPER_PARAMS == "melizalab.org/proto/stepper_params"
    assert KEY_PARAMS == "melizalab.org/proto/key_params"


def test_decode_envelope_uses_identified_schema():
    env = build_envelope(STEPPER_PARAMS, stepper_motor.Params(timeout=1000))
    decoded = decode_envelope(env)
    assert isinstance(decoded, stepper_motor.Params)
    assert decoded.timeout == 1000


POPULATED = {
    HOUSE_LIGHT_PARAMS: house_light.Params(clock_interval=300),
    HOUSE_LIGHT_STATE: house_light.State(
        switch=True, light_override=True, fake_clock=True, brightness=50
    ),
    LED_PARAMS: peckboard.LedParams(),
    LED_STATE: peckboard.LedState(led_state="red"),
    KEY_PARAMS: peckboard.KeyParams(),
    KEY_STATE: peckboard.KeyState(peck_left=True, peck_center=False, peck_right=True),
    STEPPER_PARAMS: stepper_motor.Params(timeout=1000),
    STEPPER_STATE: stepper_motor.State(switch=True, on=True, direction=True),
    SOUND_ALSA_PARAMS: sound_alsa.Params(audio_dir="/srv/stimuli"),
    SOUND_ALSA_STATE: sound_alsa.State(audio_id="song_1", playback=2),
}


def test_decode_envelope_every_schema():
    assert set(POPULATED) == set(REGISTRY)
    for type_id, message in POPULATED.items():
        env = build_envelope(type_id, message)
        if message.ListFields():
            assert env.payload != b""
        decoded = decode_envelope(env)
        assert type(decoded) is REGISTRY[type_id]
        assert decoded == message


def test_decode_unknown_identifier():
    with pytest.raises(DecodeError):
        decode_envelope(TypedEnvelope("melizalab.org/proto/nope", b""))


def test_decode_truncated_payload():
    with pytest.raises(DecodeError):
        decode_envelope(TypedEnvelope(HOUSE_LIGHT_PARAMS, b"\x08"))


def test_type_id_for():
    assert type_id_for(house_light.Params()) == HOUSE_LIGHT_PARAMS
    assert type_id_for(peckboard.KeyParams()) == KEY_PARAMS


def test_check_registry_complete():
    check_registry()
    check_registry(["house-light", "peck-leds-left"])


def test_check_registry_unknown_component():
    with pytest.raises(RegistryError, match="laser"):
        check_registry(["house-light", "laser"])


def test_check_registry_missing_schema(monkeypatch):
    trimmed = {k: v for k, v in REGISTRY.items() if k != KEY_PARAMS}
    monkeypatch.setattr(registry, "REGISTRY", trimmed)
    with pytest.raises(RegistryError, match="key_params"):
        check_registry(["peck-keys"])


def test_reference_components():
    assert set(COMPONENT_SCHEMAS) == {
        "house-light",
        "peck-leds-left",
        "peck-leds-center",
        "peck-leds-right",
        "peck-keys",
        "stepper-motor",
        "sound-alsa",
    }
