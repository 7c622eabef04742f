"""Transport layer: ZeroMQ channels to the controller."""

from .zmq_connection import PUB_ENDPOINT, REQ_ENDPOINT, StateSubscriber, ZMQConnection, send
