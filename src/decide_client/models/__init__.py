"""Protobuf payload schemas shared with the decide controller."""

from . import decide, house_light, peckboard, sound_alsa, stepper_motor
