"""Dispatcher core: authentication, fan-out/fan-in and the run loop."""

from golem.core.auth import authenticate, sasl_plain_payload
from golem.core.dispatcher import Golem, GolemState
from golem.core.sender import ConnectionOwner

__all__ = ["ConnectionOwner", "Golem", "GolemState", "authenticate", "sasl_plain_payload"]
