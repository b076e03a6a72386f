"""IRC message model: parsing, serialization and the few accessors golem needs."""

from __future__ import annotations

from dataclasses import dataclass, field

CTCP_DELIM = "\x01"
CHANNEL_PREFIXES = ("#", "&", "+", "!")

_TAG_ESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


class MessageParseError(ValueError):
    """Raised when a raw line is not a valid IRC message."""


def _unescape_tag(value: str) -> str:
    out: list[str] = []
    chars = iter(value)
    for c in chars:
        if c == "\\":
            nxt = next(chars, "")
            out.append(_TAG_ESCAPES.get(nxt, nxt))
        else:
            out.append(c)
    return "".join(out)


def _escape_tag(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\:")
        .replace(" ", "\\s")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
    )


@dataclass(frozen=True)
class Message:
    """A single IRC protocol message.

    ``prefix`` is the raw source (``nick!user@host`` or a server name),
    ``params`` includes the trailing parameter as its last element.
    """

    command: str
    params: tuple[str, ...] = ()
    prefix: str | None = None
    tags: dict[str, str] = field(default_factory=dict, compare=False)

    # ------------------------------------------------------------------
    # Parsing / serialization
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, line: str) -> Message:
        line = line.rstrip("\r\n")
        if not line.strip():
            raise MessageParseError("Empty IRC line")

        tags: dict[str, str] = {}
        if line.startswith("@"):
            raw_tags, _, line = line[1:].partition(" ")
            for item in raw_tags.split(";"):
                if not item:
                    continue
                key, _, value = item.partition("=")
                tags[key] = _unescape_tag(value)
            line = line.lstrip(" ")

        prefix = None
        if line.startswith(":"):
            prefix, _, line = line[1:].partition(" ")
            line = line.lstrip(" ")

        trailing = None
        if " :" in line:
            line, trailing = line.split(" :", 1)
        elif line.startswith(":"):
            line, trailing = "", line[1:]

        parts = line.split()
        if not parts:
            raise MessageParseError(f"No command in IRC line: {line!r}")

        command = parts[0].upper()
        params = parts[1:]
        if trailing is not None:
            params.append(trailing)
        return cls(command=command, params=tuple(params), prefix=prefix, tags=tags)

    def serialize(self) -> str:
        """Render the message as a raw line, without the CRLF terminator."""
        parts: list[str] = []
        if self.tags:
            parts.append(
                "@" + ";".join(
                    f"{k}={_escape_tag(v)}" if v else k for k, v in self.tags.items()
                )
            )
        if self.prefix:
            parts.append(f":{self.prefix}")
        parts.append(self.command)
        if self.params:
            *middle, last = self.params
            for param in middle:
                if not param or " " in param or param.startswith(":"):
                    raise ValueError(f"Invalid middle parameter {param!r} in {self.command}")
            parts.extend(middle)
            if not last or " " in last or last.startswith(":"):
                parts.append(f":{last}")
            else:
                parts.append(last)
        return " ".join(parts)

    def __str__(self) -> str:
        return self.serialize()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def source_nickname(self) -> str | None:
        """Nickname of the sender, or None for server-originated messages."""
        if not self.prefix:
            return None
        nick, sep, _ = self.prefix.partition("!")
        if sep or "@" in nick:
            return nick.partition("@")[0]
        # A bare prefix containing a dot is a server name
        if "." in nick:
            return None
        return nick

    @property
    def is_privmsg(self) -> bool:
        return self.command == "PRIVMSG" and len(self.params) >= 2

    @property
    def target(self) -> str | None:
        return self.params[0] if self.params else None

    @property
    def text(self) -> str | None:
        """Trailing text of PRIVMSG / NOTICE messages."""
        if self.command in ("PRIVMSG", "NOTICE") and len(self.params) >= 2:
            return self.params[-1]
        return None

    @property
    def response_target(self) -> str | None:
        """Where a reply to this message should go.

        The channel for channel messages, the sender for private queries,
        None for anything else.
        """
        if self.command not in ("PRIVMSG", "NOTICE") or not self.params:
            return None
        target = self.params[0]
        if target.startswith(CHANNEL_PREFIXES):
            return target
        return self.source_nickname

    # ------------------------------------------------------------------
    # CTCP
    # ------------------------------------------------------------------

    @property
    def ctcp(self) -> tuple[str, str] | None:
        """Return (command, argument) if this is a CTCP-wrapped message."""
        text = self.text
        if not text or not text.startswith(CTCP_DELIM):
            return None
        body = text.strip(CTCP_DELIM)
        command, _, arg = body.partition(" ")
        return command.upper(), arg


def privmsg(target: str, text: str) -> Message:
    return Message("PRIVMSG", (target, text))


def notice(target: str, text: str) -> Message:
    return Message("NOTICE", (target, text))


def ctcp_query(target: str, command: str, arg: str = "") -> Message:
    body = f"{command} {arg}".rstrip()
    return privmsg(target, f"{CTCP_DELIM}{body}{CTCP_DELIM}")


def ctcp_reply(target: str, command: str, arg: str = "") -> Message:
    body = f"{command} {arg}".rstrip()
    return notice(target, f"{CTCP_DELIM}{body}{CTCP_DELIM}")
