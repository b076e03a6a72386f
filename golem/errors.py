"""Exception hierarchy for golem."""

from __future__ import annotations


class GolemError(Exception):
    """Base class for every error raised by golem itself."""


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


class ConfigError(GolemError):
    """The configuration file is missing, unreadable or invalid."""


class UnknownPluginError(GolemError):
    """A configured plugin name has no registered factory."""

    def __init__(self, name: str):
        super().__init__(f"Unknown plugin name: {name}")
        self.name = name


class PluginInitError(GolemError):
    """A plugin failed to initialize. Aborts the whole startup."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Cannot initialize plugin {name}")
        self.name = name


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------


class PluginError(GolemError):
    """Infrastructure failure inside a plugin (network, malformed response...)."""


# ---------------------------------------------------------------------------
# Run loop
# ---------------------------------------------------------------------------


class AuthenticationError(GolemError):
    """The connection could not be brought into an identified state."""


class StreamEndedError(GolemError):
    """The inbound message stream ended. A live bot never expects this."""


class PluginRunError(GolemError):
    """A plugin background task raised."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Plugin {name}.run() failed")
        self.name = name


class PluginExitedError(PluginRunError):
    """A plugin background task returned. Background tasks must run forever."""

    def __init__(self, name: str):
        super().__init__(name, f"Plugin {name}.run() exited")


class PluginObservationError(GolemError):
    """A plugin failed while observing an outbound message."""

    def __init__(self, name: str):
        super().__init__(f"out_message error from plugin {name}")
        self.name = name


class PluginDispatchError(GolemError):
    """A single plugin's in_message handler failed for one inbound message."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"in_message error from plugin {name}: {cause}")
        self.name = name
        self.cause = cause


class DispatchError(GolemError):
    """At least one plugin failed while handling an inbound message.

    ``failures`` holds one ``PluginDispatchError`` per failing plugin, in
    configured plugin order. ``replies`` holds what the other plugins
    produced for the same message; they are not sent.
    """

    def __init__(self, failures: list[PluginDispatchError], replies: list | None = None):
        names = ", ".join(f.name for f in failures)
        super().__init__(f"Plugin error ! ({names})")
        self.failures = failures
        self.replies = replies or []


class WebServerError(GolemError):
    """The plugin HTTP server could not be started."""
