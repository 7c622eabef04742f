"""Shared fixtures: an in-process stand-in for the decide controller."""

from __future__ import annotations

import threading

import pytest
import zmq
from google.protobuf import any_pb2

from decide_client.models import decide
from decide_client.protocol.envelope import OperationKind
from decide_client.protocol.framing import parse_multipart


def ok_reply() -> bytes:
    reply = decide.Reply()
    reply.ok.SetInParent()
    return reply.SerializeToString()


def error_reply(message: str) -> bytes:
    return decide.Reply(error=message).SerializeToString()


def params_reply(params: any_pb2.Any) -> bytes:
    reply = decide.Reply()
    reply.params.CopyFrom(params)
    return reply.SerializeToString()


class FakeController:
    """A REP socket that stores parameters and acknowledges state changes.

    ``tamper`` may be set to a callable that rewrites the stored ``Any``
    before it is echoed, to simulate a controller that misreads parameters.
    """

    def __init__(self, context: zmq.Context) -> None:
        self.requests = []
        self.installed: dict[str, any_pb2.Any] = {}
        self.tamper = None
        self.fail_with: str | None = None
        self._socket = context.socket(zmq.REP)
        self._socket.setsockopt(zmq.LINGER, 0)
        port = self._socket.bind_to_random_port("tcp://127.0.0.1")
        self.endpoint = f"tcp://127.0.0.1:{port}"
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        self._socket.close()

    def handle(self, frames: list[bytes]) -> bytes:
        request = parse_multipart(frames)
        self.requests.append(request)
        if self.fail_with is not None:
            return error_reply(self.fail_with)
        if request.op is OperationKind.SET_PARAMETERS:
            params = decide.ComponentParams.FromString(request.body).parameters
            if self.tamper is not None:
                params = self.tamper(params)
            self.installed[request.component] = params
            return ok_reply()
        if request.op is OperationKind.GET_PARAMETERS:
            if request.component not in self.installed:
                return error_reply(f"no parameters for {request.component}")
            return params_reply(self.installed[request.component])
        return ok_reply()

    def _serve(self) -> None:
        while not self._stop.is_set():
            if self._socket.poll(50):
                frames = self._socket.recv_multipart()
                self._socket.send(self.handle(frames))


@pytest.fixture
def zmq_context():
    context = zmq.Context()
    yield context
    context.term()


@pytest.fixture
def controller(zmq_context):
    fake = FakeController(zmq_context)
    fake.start()
    yield fake
    fake.stop()
