"""ZeroMQ request/reply and subscription channels to the decide controller.

The controller serves requests on a REP socket and broadcasts state changes
on a PUB socket. A :class:`ZMQConnection` is good for exactly one exchange:
:func:`send` opens one, sends a request, blocks for the reply and closes it
whatever the outcome. A refused connection fails before anything is sent.
There are no retries and no timeouts; a controller that accepts the
connection but never answers blocks the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import zmq
from zmq.utils.monitor import recv_monitor_message

from ..errors import TransportError
from ..protocol.framing import build_multipart
from ..protocol.envelope import Request
from ..protocol.parser import STATE_TOPIC_PREFIX, ReplyResult, StateUpdate, parse_pub, parse_reply

logger = logging.getLogger(__name__)

REQ_ENDPOINT = "tcp://127.0.0.1:7897"
PUB_ENDPOINT = "tcp://127.0.0.1:7898"

CONNECT_EVENTS = zmq.EVENT_CONNECTED | zmq.EVENT_CONNECT_RETRIED | zmq.EVENT_CLOSED


class ZMQConnection:
    """A REQ socket connected to the controller for a single exchange.

    Usage::

        with ZMQConnection() as conn:
            reply_frames = conn.send_and_receive(request_frames)
    """

    def __init__(
        self,
        endpoint: str = REQ_ENDPOINT,
        context: zmq.Context | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._context = context
        self._socket: zmq.Socket | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def open(self) -> None:
        """Create the REQ socket and connect it.

        Blocks until the first connection attempt resolves, so a refused
        connection is reported here instead of the request sitting queued.

        Raises:
            TransportError: If the socket cannot be created, the endpoint is
                invalid, or the controller refuses the connection.
        """
        context = self._context or zmq.Context.instance()
        try:
            sock = context.socket(zmq.REQ)
        except zmq.ZMQError as e:
            raise TransportError(f"Could not create socket: {e}") from e
        try:
            sock.setsockopt(zmq.LINGER, 0)
            self._await_connection(sock)
        except zmq.ZMQError as e:
            sock.close()
            raise TransportError(
                f"Could not connect to controller at {self._endpoint}: {e}"
            ) from e
        except TransportError:
            sock.close()
            raise
        self._socket = sock
        logger.debug("Connected to %s", self._endpoint)

    def _await_connection(self, sock: zmq.Socket) -> None:
        monitor = sock.get_monitor_socket(CONNECT_EVENTS)
        try:
            sock.connect(self._endpoint)
            while True:
                event = recv_monitor_message(monitor)["event"]
                if event == zmq.EVENT_CONNECTED:
                    return
                if event in (zmq.EVENT_CONNECT_RETRIED, zmq.EVENT_CLOSED):
                    raise TransportError(
                        f"Controller at {self._endpoint} refused the connection"
                    )
        finally:
            sock.disable_monitor()
            monitor.close(linger=0)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._socket is None:
            return
        try:
            self._socket.close()
        except zmq.ZMQError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._socket = None
            logger.debug("Disconnected from %s", self._endpoint)

    def __enter__(self) -> ZMQConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def send_and_receive(self, frames: list[bytes]) -> list[bytes]:
        """Send one multipart message and block for exactly one reply.

        Raises:
            TransportError: If not connected, or sending/receiving fails.
        """
        if self._socket is None:
            raise TransportError("Not connected to controller")
        try:
            self._socket.send_multipart(frames)
            logger.debug("Sent %d frames to %s", len(frames), self._endpoint)
            reply = self._socket.recv_multipart()
        except zmq.ZMQError as e:
            raise TransportError(
                f"Exchange with {self._endpoint} failed: {e}"
            ) from e
        logger.debug("Received %d frames from %s", len(reply), self._endpoint)
        return reply


def send(
    request: Request,
    endpoint: str = REQ_ENDPOINT,
    context: zmq.Context | None = None,
) -> ReplyResult:
    """Perform one round trip for ``request`` and decode the reply.

    Raises:
        TransportError: If the endpoint cannot be reached or the exchange fails.
        DecodeError: If the reply cannot be decoded.
        RemoteFailure: If the controller replied with an error.
    """
    with ZMQConnection(endpoint, context) as conn:
        frames = conn.send_and_receive(build_multipart(request))
    return parse_reply(frames, component=request.component)


class StateSubscriber:
    """A SUB socket on the controller's state-change broadcasts.

    The controller's publish socket does not queue messages for late
    subscribers: open the subscriber before sending the state change you
    want to observe.

    Args:
        endpoint: The controller's publish endpoint.
        components: Components to follow. ``None`` follows all of them.
        context: ZeroMQ context; defaults to the process-wide instance.
    """

    def __init__(
        self,
        endpoint: str = PUB_ENDPOINT,
        components: Iterable[str] | None = None,
        context: zmq.Context | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._components = list(components) if components is not None else None
        self._context = context
        self._socket: zmq.Socket | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def topics(self) -> list[bytes]:
        if self._components is None:
            return [STATE_TOPIC_PREFIX]
        return [STATE_TOPIC_PREFIX + c.encode("utf-8") for c in self._components]

    def open(self) -> None:
        """Create the SUB socket, connect it and install the subscriptions.

        Raises:
            TransportError: If the socket cannot be created or connected.
        """
        context = self._context or zmq.Context.instance()
        try:
            sock = context.socket(zmq.SUB)
        except zmq.ZMQError as e:
            raise TransportError(f"Could not create socket: {e}") from e
        try:
            sock.setsockopt(zmq.LINGER, 0)
            sock.connect(self._endpoint)
            for topic in self.topics():
                sock.setsockopt(zmq.SUBSCRIBE, topic)
        except zmq.ZMQError as e:
            sock.close()
            raise TransportError(
                f"Could not subscribe to {self._endpoint}: {e}"
            ) from e
        self._socket = sock
        logger.debug("Subscribed to %s on %s", self.topics(), self._endpoint)

    def close(self) -> None:
        if self._socket is None:
            return
        try:
            self._socket.close()
        except zmq.ZMQError as e:
            logger.warning("Error closing subscriber: %s", e)
        finally:
            self._socket = None

    def __enter__(self) -> StateSubscriber:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def recv(self) -> StateUpdate:
        """Block until the next broadcast and decode it.

        Raises:
            TransportError: If not subscribed or the receive fails.
            DecodeError: If the broadcast is malformed.
        """
        if self._socket is None:
            raise TransportError("Subscriber is not open")
        try:
            frames = self._socket.recv_multipart()
        except zmq.ZMQError as e:
            raise TransportError(f"Receive from {self._endpoint} failed: {e}") from e
        update = parse_pub(frames)
        logger.debug("State update from %s", update.component)
        return update
