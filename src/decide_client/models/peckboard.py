"""Peckboard LED and key payloads.

LEDs and keys take no parameters; both parameter messages are empty.
"""

from __future__ import annotations

from .schema import Field, build_schema

_classes = build_schema(
    "peckboard.proto",
    "peckboard",
    {
        "LedState": [Field("led_state", 1, "string")],
        "LedParams": [],
        "KeyState": [
            Field("peck_left", 1, "bool"),
            Field("peck_center", 2, "bool"),
            Field("peck_right", 3, "bool"),
        ],
        "KeyParams": [],
    },
)

LedState = _classes["LedState"]
LedParams = _classes["LedParams"]
KeyState = _classes["KeyState"]
KeyParams = _classes["KeyParams"]
