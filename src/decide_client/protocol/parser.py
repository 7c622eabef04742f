"""Reply and broadcast parsing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from google.protobuf.message import DecodeError as ProtobufDecodeError

from ..errors import DecodeError, RemoteFailure
from ..models import decide
from .envelope import TypedEnvelope

STATE_TOPIC_PREFIX = b"state/"


@dataclass(frozen=True)
class Ack:
    """Bare acknowledgement: the controller accepted the request."""


@dataclass(frozen=True)
class ParamsReply:
    """Parameters currently installed on a component."""

    envelope: TypedEnvelope


@dataclass(frozen=True)
class StateReply:
    """A component state echoed by the controller."""

    envelope: TypedEnvelope


ReplyResult = Union[Ack, ParamsReply, StateReply]


@dataclass(frozen=True)
class StateUpdate:
    """A state-change broadcast from the controller's publish socket."""

    component: str
    time: datetime | None
    envelope: TypedEnvelope


def parse_reply(frames: list[bytes], component: str = "") -> ReplyResult:
    """Decode a reply message into a :data:`ReplyResult`.

    Args:
        frames: The received multipart message; must be a single frame.
        component: Component the request was addressed to, for messages.

    Raises:
        DecodeError: If the reply is not one frame, does not parse, or
            carries no result.
        RemoteFailure: If the controller replied with an error.
    """
    if len(frames) != 1:
        raise DecodeError(f"Reply must have 1 frame, got {len(frames)}")
    try:
        reply = decide.Reply.FromString(bytes(frames[0]))
    except ProtobufDecodeError as e:
        raise DecodeError(f"Malformed reply: {e}") from e

    kind = reply.WhichOneof("result")
    if kind == "ok":
        return Ack()
    if kind == "params":
        return ParamsReply(TypedEnvelope.from_any(reply.params))
    if kind == "state":
        return StateReply(TypedEnvelope.from_any(reply.state))
    if kind == "error":
        raise RemoteFailure(reply.error, component=component)
    raise DecodeError("Reply carries no result")


def parse_pub(frames: list[bytes]) -> StateUpdate:
    """Decode a ``[topic, Pub]`` broadcast.

    The topic is ``state/<component>``.

    Raises:
        DecodeError: If the topic or the ``Pub`` message is malformed.
    """
    if len(frames) != 2:
        raise DecodeError(f"Broadcast must have 2 frames, got {len(frames)}")
    topic, body = (bytes(f) for f in frames)
    if not topic.startswith(STATE_TOPIC_PREFIX):
        raise DecodeError(f"Unexpected broadcast topic {topic!r}")
    try:
        component = topic[len(STATE_TOPIC_PREFIX):].decode("utf-8")
        pub = decide.Pub.FromString(body)
    except (UnicodeDecodeError, ProtobufDecodeError) as e:
        raise DecodeError(f"Malformed broadcast: {e}") from e

    time = None
    if pub.HasField("time"):
        time = pub.time.ToDatetime(tzinfo=timezone.utc)
    return StateUpdate(
        component=component,
        time=time,
        envelope=TypedEnvelope.from_any(pub.state),
    )
