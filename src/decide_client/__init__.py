"""Control-plane client for the decide experiment controller."""

from .errors import (
    DecideError,
    DecodeError,
    ProtocolMismatch,
    RegistryError,
    RemoteFailure,
    TransportError,
)
from .protocol.envelope import OperationKind, Request, TypedEnvelope, build_envelope, build_request
from .transport.zmq_connection import StateSubscriber, send
