"""ALSA audio playback payloads."""

from __future__ import annotations

from .schema import DURATION, Field, build_schema

_classes = build_schema(
    "sound_alsa.proto",
    "sound_alsa",
    {
        "State": [
            Field("audio_id", 1, "string"),
            Field("playback", 2, "int32"),
            Field("elapsed", 3, DURATION),
        ],
        "Params": [Field("audio_dir", 1, "string")],
    },
)

State = _classes["State"]
Params = _classes["Params"]
