"""Shared command syntax: ``λcmd args [> nick]``."""

from __future__ import annotations

from dataclasses import dataclass

COMMAND_PREFIX = "λ"


@dataclass(frozen=True)
class Command:
    name: str
    args: str = ""
    target: str | None = None  # nick the reply is addressed to

    def address(self, text: str) -> str:
        """Prefix ``text`` with ``nick: `` when the command named a target."""
        if self.target:
            return f"{self.target}: {text}"
        return text


def parse_command(text: str | None, prefix: str = COMMAND_PREFIX) -> Command | None:
    """Parse a bot command, or return None if ``text`` is not one.

    >>> parse_command("λurl 3 > charlie")
    Command(name='url', args='3', target='charlie')
    """
    if not text:
        return None
    text = text.strip()
    if not text.startswith(prefix):
        return None
    body = text[len(prefix):]
    if not body or body[0].isspace():
        return None

    # Only a trailing " > nick" names a target, "a>b" is plain text
    target = None
    head, sep, raw_target = body.rpartition(" >")
    if sep:
        body = head
        raw_target = raw_target.strip()
        if not raw_target or " " in raw_target:
            return None
        target = raw_target

    name, _, args = body.strip().partition(" ")
    if not name:
        return None
    return Command(name=name, args=args.strip(), target=target)
