"""Configuration schema for golem."""

import ipaddress

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class IrcConfig(_Frozen):
    """IRC server connection settings."""

    server: str = "irc.libera.chat"
    port: int = 6697
    use_tls: bool = True
    nickname: str = "golem"
    username: str | None = None
    realname: str | None = None
    password: str | None = None  # server PASS, not SASL
    channels: list[str] = Field(default_factory=list)


class UrlPluginConfig(_Frozen):
    youtube_api_key: str | None = None
    max_urls_per_channel: int = Field(default=10, ge=1)
    timeout: float = 10.0


class JokePluginConfig(_Frozen):
    api_url: str = "https://icanhazdadjoke.com/"
    timeout: float = 10.0


class WebhookPluginConfig(_Frozen):
    token: str | None = None  # None = no token check


class PluginsConfig(_Frozen):
    """Per-plugin sections. Plugins read their own section at init time."""

    url: UrlPluginConfig = Field(default_factory=UrlPluginConfig)
    joke: JokePluginConfig = Field(default_factory=JokePluginConfig)
    webhook: WebhookPluginConfig = Field(default_factory=WebhookPluginConfig)


class GolemConfig(_Frozen):
    """Root configuration. Loaded once, read-only afterward."""

    blacklisted_users: list[str] = Field(default_factory=list)
    plugins: list[str] = Field(default_factory=list)
    sasl_password: str | None = None
    server_bind_address: str = "127.0.0.1"
    server_bind_port: int = Field(default=8080, ge=0, le=65535)
    irc: IrcConfig = Field(default_factory=IrcConfig)
    plugin_config: PluginsConfig = Field(default_factory=PluginsConfig)

    @field_validator("server_bind_address")
    @classmethod
    def _valid_ip(cls, value: str) -> str:
        ipaddress.ip_address(value)
        return value
