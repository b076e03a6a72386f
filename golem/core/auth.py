"""Authentication sequencing, run once before any message is processed."""

from __future__ import annotations

import base64

from loguru import logger

from golem.errors import AuthenticationError
from golem.irc.client import Connection

SASL_CAPABILITY = "sasl"


def sasl_plain_payload(nickname: str, password: str) -> str:
    """Base64 of ``nick\\0nick\\0password`` (authzid and authcid are both the nick)."""
    raw = f"{nickname}\0{nickname}\0{password}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


async def authenticate(connection: Connection, sasl_password: str | None) -> None:
    """
    Bring the connection into an identified state.

    Without a password this is a plain ``identify()``. With one, SASL PLAIN
    is requested and the credentials sent before identifying.

    Raises:
        AuthenticationError: wrapping whatever the connection raised.
    """
    try:
        if not sasl_password:
            logger.info("No SASL password configured, not authenticating anything.")
            await connection.identify()
            return

        logger.info("Authenticating with SASL")
        await connection.request_capability(SASL_CAPABILITY)
        await connection.begin_sasl()
        nick = connection.current_nickname()
        await connection.send_authenticate_payload(sasl_plain_payload(nick, sasl_password))
        await connection.identify()
        # The server's 903/904 answer arrives on the inbound stream later
        logger.info("SASL authenticated (hopefully)")
    except Exception as e:
        raise AuthenticationError("Problem while authenticating") from e
