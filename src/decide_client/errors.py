"""Exception hierarchy for the decide control-plane client.

Every failure of a round trip surfaces as one of these, so callers can tell
a dead endpoint from a controller that refused or misread a command.
"""

from __future__ import annotations

from typing import Any


class DecideError(Exception):
    """Base class for all client errors."""


class TransportError(DecideError, ConnectionError):
    """The request/reply channel failed to connect, send, or receive."""


class DecodeError(DecideError):
    """A reply, broadcast, or envelope could not be decoded."""


class RemoteFailure(DecideError):
    """The controller answered with an explicit error result."""

    def __init__(self, message: str, component: str = "") -> None:
        self.message = message
        self.component = component
        where = f" ({component})" if component else ""
        super().__init__(f"Controller reported failure{where}: {message}")


class ProtocolMismatch(DecideError):
    """A reply decoded cleanly but is not the result the operation expects."""

    def __init__(self, reason: str, expected: Any = None, actual: Any = None) -> None:
        self.reason = reason
        self.expected = expected
        self.actual = actual
        super().__init__(f"{reason}: expected {expected!r}, got {actual!r}")


class RegistryError(DecideError):
    """The schema registry cannot serve a component the client drives."""
