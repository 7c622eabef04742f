"""Generic containers of the decide protocol.

These wrap a component payload (as ``google.protobuf.Any``) for transport::

    message StateChange     { google.protobuf.Any state = 1; }
    message ComponentParams { google.protobuf.Any parameters = 1; }
    message Reply {
        oneof result {
            google.protobuf.Empty ok = 1;
            string error = 2;
            google.protobuf.Any params = 3;
            google.protobuf.Any state = 4;
        }
    }
    message Pub { google.protobuf.Timestamp time = 1; google.protobuf.Any state = 2; }
"""

from __future__ import annotations

from .schema import ANY, EMPTY, TIMESTAMP, Field, build_schema

_classes = build_schema(
    "decide.proto",
    "decide",
    {
        "StateChange": [Field("state", 1, ANY)],
        "ComponentParams": [Field("parameters", 1, ANY)],
        "Reply": [
            Field("ok", 1, EMPTY, oneof="result"),
            Field("error", 2, "string", oneof="result"),
            Field("params", 3, ANY, oneof="result"),
            Field("state", 4, ANY, oneof="result"),
        ],
        "Pub": [Field("time", 1, TIMESTAMP), Field("state", 2, ANY)],
    },
)

StateChange = _classes["StateChange"]
ComponentParams = _classes["ComponentParams"]
Reply = _classes["Reply"]
Pub = _classes["Pub"]
