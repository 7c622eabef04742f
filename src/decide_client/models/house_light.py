"""House light payloads.

``Params.clock_interval`` is the wait in seconds between brightness updates
from the light's internal clock. ``State.brightness`` is 0-100.
"""

from __future__ import annotations

from .schema import Field, build_schema

_classes = build_schema(
    "house_light.proto",
    "house_light",
    {
        "State": [
            Field("switch", 1, "bool"),
            Field("light_override", 2, "bool"),
            Field("fake_clock", 3, "bool"),
            Field("brightness", 4, "int32"),
        ],
        "Params": [Field("clock_interval", 1, "int64")],
    },
)

State = _classes["State"]
Params = _classes["Params"]
