"""Multipart framing of requests on the REQ/REP channel.

Frame layout::

    +-----------+--------------+----------------+------------------+
    | Version   | Request type | Component name | Body             |
    | b"DCDC01" | 1 byte       | UTF-8 string   | container bytes  |
    +-----------+--------------+----------------+------------------+

- Version: protocol version tag, checked by the controller
- Request type: :class:`~.envelope.OperationKind` wire code
- Body: serialized ``ComponentParams`` / ``StateChange``, may be empty
"""

from __future__ import annotations

from ..errors import DecodeError
from .envelope import OperationKind, Request

DECIDE_VERSION = b"DCDC01"
REQUEST_FRAMES = 4


def build_multipart(request: Request) -> list[bytes]:
    """Lay a request out as the four frames the controller expects."""
    return [
        DECIDE_VERSION,
        bytes([request.op.value]),
        request.component.encode("utf-8"),
        request.body,
    ]


def parse_multipart(frames: list[bytes]) -> Request:
    """Parse request frames back into a :class:`Request`.

    Raises:
        DecodeError: On a wrong frame count, version, or request type.
    """
    if len(frames) != REQUEST_FRAMES:
        raise DecodeError(
            f"Request must have {REQUEST_FRAMES} frames, got {len(frames)}"
        )
    version, request_type, component, body = (bytes(f) for f in frames)
    if version != DECIDE_VERSION:
        raise DecodeError(f"Unsupported protocol version {version!r}")
    if len(request_type) != 1:
        raise DecodeError(
            f"Request type must be 1 byte, got {len(request_type)}"
        )
    try:
        op = OperationKind(request_type[0])
    except ValueError:
        raise DecodeError(
            f"Unknown request type 0x{request_type[0]:02X}"
        ) from None
    try:
        name = component.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Component name is not UTF-8: {e}") from e
    return Request(op=op, component=name, body=body)
