"""Protocol layer: typed envelopes, request framing, and reply parsing."""

from .envelope import OperationKind, Request, TypedEnvelope, build_envelope, build_request
from .framing import build_multipart, parse_multipart
from .parser import Ack, ParamsReply, StateReply, parse_reply
