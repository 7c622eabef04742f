"""Tests for the ZeroMQ request/reply driver and state subscriber."""

import socket
from unittest.mock import MagicMock, patch

import pytest
import zmq

from decide_client.errors import RemoteFailure, TransportError
from decide_client.models import decide, house_light
from decide_client.protocol.envelope import OperationKind, build_envelope, build_request
from decide_client.protocol.parser import Ack, ParamsReply
from decide_client.registry import HOUSE_LIGHT_PARAMS, HOUSE_LIGHT_STATE
from decide_client.transport.zmq_connection import StateSubscriber, ZMQConnection, send

from conftest import ok_reply


def _set_request():
    env = build_envelope(HOUSE_LIGHT_PARAMS, house_light.Params(clock_interval=300))
    return build_request(OperationKind.SET_PARAMETERS, "house-light", env)


def test_send_roundtrip(controller, zmq_context):
    result = send(_set_request(), controller.endpoint, zmq_context)
    assert result == Ack()
    assert controller.requests == [_set_request()]


def test_send_get_after_set(controller, zmq_context):
    send(_set_request(), controller.endpoint, zmq_context)
    get = build_request(OperationKind.GET_PARAMETERS, "house-light")
    result = send(get, controller.endpoint, zmq_context)
    assert isinstance(result, ParamsReply)
    assert result.envelope.type_id == HOUSE_LIGHT_PARAMS


def test_send_remote_failure(controller, zmq_context):
    controller.fail_with = "component not found"
    with pytest.raises(RemoteFailure, match="component not found"):
        send(_set_request(), controller.endpoint, zmq_context)


def _connecting_context(event=zmq.EVENT_CONNECTED):
    """A mocked context whose socket monitor reports ``event`` on connect."""
    context = MagicMock()
    patcher = patch(
        "decide_client.transport.zmq_connection.recv_monitor_message",
        return_value={"event": event, "value": 0, "endpoint": b""},
    )
    return context, patcher


def test_send_invalid_endpoint_raises_transport_error(zmq_context):
    """An endpoint the transport cannot parse fails before sending."""
    with pytest.raises(TransportError):
        send(_set_request(), "bogus://nowhere", zmq_context)


def test_send_refused_connection_raises_transport_error(zmq_context):
    """Nothing listening on the port: the refused connect is reported."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]

    request = build_request(OperationKind.GET_PARAMETERS, "house-light")
    with pytest.raises(TransportError, match="refused"):
        send(request, f"tcp://127.0.0.1:{port}", zmq_context)


def test_refused_connection_sends_nothing():
    context, patcher = _connecting_context(zmq.EVENT_CONNECT_RETRIED)
    sock = context.socket.return_value
    monitor = sock.get_monitor_socket.return_value

    conn = ZMQConnection("tcp://127.0.0.1:7897", context)
    with patcher, pytest.raises(TransportError):
        conn.open()

    assert not conn.connected
    sock.send_multipart.assert_not_called()
    sock.close.assert_called_once()
    monitor.close.assert_called_once()


def test_transport_error_is_connection_error():
    assert issubclass(TransportError, ConnectionError)


def test_send_and_receive_requires_open():
    conn = ZMQConnection("tcp://127.0.0.1:1")
    with pytest.raises(TransportError):
        conn.send_and_receive([b"x"])


def test_connection_released_after_failed_exchange():
    """The socket is closed even when the exchange fails."""
    context, patcher = _connecting_context()
    sock = context.socket.return_value
    sock.recv_multipart.side_effect = zmq.ZMQError(zmq.EAGAIN)

    with patcher, pytest.raises(TransportError):
        send(_set_request(), "tcp://127.0.0.1:7897", context)

    sock.send_multipart.assert_called_once()
    sock.close.assert_called_once()


def test_connection_released_after_success():
    context, patcher = _connecting_context()
    sock = context.socket.return_value
    sock.recv_multipart.return_value = [ok_reply()]

    with patcher:
        assert send(_set_request(), "tcp://127.0.0.1:7897", context) == Ack()
    context.socket.assert_called_once_with(zmq.REQ)
    sock.connect.assert_called_once_with("tcp://127.0.0.1:7897")
    sock.get_monitor_socket.return_value.close.assert_called_once()
    sock.close.assert_called_once()


def test_connection_context_manager():
    context, patcher = _connecting_context()
    conn = ZMQConnection("tcp://127.0.0.1:7897", context)
    with patcher, conn:
        assert conn.connected
    assert not conn.connected
    conn.close()


def test_subscriber_topics():
    assert StateSubscriber(components=None).topics() == [b"state/"]
    sub = StateSubscriber(components=["house-light", "peck-keys"])
    assert sub.topics() == [b"state/house-light", b"state/peck-keys"]


def test_subscriber_recv():
    context = MagicMock()
    sock = context.socket.return_value
    pub = decide.Pub()
    pub.state.type_url = HOUSE_LIGHT_STATE
    pub.state.value = house_light.State(switch=True).SerializeToString()
    sock.recv_multipart.return_value = [b"state/house-light", pub.SerializeToString()]

    with StateSubscriber("tcp://127.0.0.1:7898", ["house-light"], context) as sub:
        update = sub.recv()

    sock.setsockopt.assert_any_call(zmq.SUBSCRIBE, b"state/house-light")
    assert update.component == "house-light"
    assert update.envelope.type_id == HOUSE_LIGHT_STATE
    sock.close.assert_called_once()


def test_subscriber_recv_requires_open():
    with pytest.raises(TransportError):
        StateSubscriber().recv()
