"""Typed envelopes and outer requests.

A component payload travels as a ``google.protobuf.Any``: a type identifier
naming its schema plus the serialized bytes. That envelope is wrapped in a
container chosen by the operation (``ComponentParams`` for parameter
requests, ``StateChange`` for state changes) and the container's bytes
become the body of a :class:`Request`.

Nothing in this module performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from google.protobuf import any_pb2
from google.protobuf.message import Message

from ..models import decide


class OperationKind(IntEnum):
    """Component request types, valued by their one-byte wire code."""

    CHANGE_STATE = 0x00
    SET_PARAMETERS = 0x02
    GET_PARAMETERS = 0x03


@dataclass(frozen=True)
class TypedEnvelope:
    """A payload tagged with the identifier of the schema that decodes it."""

    type_id: str
    payload: bytes

    def to_any(self) -> any_pb2.Any:
        return any_pb2.Any(type_url=self.type_id, value=self.payload)

    @classmethod
    def from_any(cls, message: any_pb2.Any) -> TypedEnvelope:
        return cls(type_id=message.type_url, payload=bytes(message.value))

    def __repr__(self) -> str:
        return (
            f"TypedEnvelope(type_id={self.type_id!r}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


@dataclass(frozen=True)
class Request:
    """One request to the controller: what to do, to which component."""

    op: OperationKind
    component: str
    body: bytes = b""


def build_envelope(type_id: str, payload: Message) -> TypedEnvelope:
    """Serialize ``payload`` and pair the bytes with ``type_id``.

    Serialization is deterministic so that an envelope built twice from the
    same value is byte-identical.

    Raises:
        ValueError: If ``type_id`` is empty.
    """
    if not type_id:
        raise ValueError("Type identifier must not be empty")
    return TypedEnvelope(
        type_id=type_id,
        payload=payload.SerializeToString(deterministic=True),
    )


def build_request(
    op: OperationKind,
    component: str,
    envelope: TypedEnvelope | None = None,
) -> Request:
    """Wrap ``envelope`` in the container for ``op`` and address it.

    ``GET_PARAMETERS`` may be sent without an envelope, in which case the
    body is empty. The other operations require one.

    Raises:
        ValueError: If ``component`` is empty or a required envelope is missing.
    """
    if not component:
        raise ValueError("Component identifier must not be empty")
    op = OperationKind(op)

    if envelope is None:
        if op is not OperationKind.GET_PARAMETERS:
            raise ValueError(f"{op.name} requires a payload envelope")
        return Request(op=op, component=component)

    if op is OperationKind.CHANGE_STATE:
        container: Message = decide.StateChange(state=envelope.to_any())
    else:
        container = decide.ComponentParams(parameters=envelope.to_any())
    return Request(
        op=op,
        component=component,
        body=container.SerializeToString(deterministic=True),
    )


def unwrap_body(request: Request) -> TypedEnvelope | None:
    """Recover the envelope carried in a request body, if any."""
    if not request.body:
        return None
    if request.op is OperationKind.CHANGE_STATE:
        return TypedEnvelope.from_any(decide.StateChange.FromString(request.body).state)
    return TypedEnvelope.from_any(
        decide.ComponentParams.FromString(request.body).parameters
    )
