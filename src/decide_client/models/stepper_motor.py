"""Stepper motor payloads.

``Params.timeout`` is how long, in ms, the motor runs after one signal.
"""

from __future__ import annotations

from .schema import Field, build_schema

_classes = build_schema(
    "stepper_motor.proto",
    "stepper_motor",
    {
        "State": [
            Field("switch", 1, "bool"),
            Field("on", 2, "bool"),
            Field("direction", 3, "bool"),
        ],
        "Params": [Field("timeout", 1, "uint64")],
    },
)

State = _classes["State"]
Params = _classes["Params"]
