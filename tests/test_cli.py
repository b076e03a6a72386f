"""Tests for the command line entry point."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from golem.cli import main, run_bot
from golem.config.schema import GolemConfig
from golem.core.dispatcher import Golem
from golem.errors import StreamEndedError
from tests.fakes import FakeConnection


def write_config(tmp_path, **data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return path


def test_check_valid_config(tmp_path, capsys):
    path = write_config(tmp_path, plugins=["echo", "url"])
    main(["--config", str(path), "--check"])
    assert "echo, url" in capsys.readouterr().out


def test_unknown_plugin_exits_non_zero(tmp_path):
    path = write_config(tmp_path, plugins=["bogus"])
    with patch("golem.cli.run_bot", new_callable=AsyncMock) as run_bot:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(path)])
    assert exc_info.value.code == 1
    run_bot.assert_not_called()


def test_missing_config_exits_non_zero(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["--config", str(tmp_path / "missing.json")])
    assert exc_info.value.code == 1


def test_runs_the_bot(tmp_path):
    path = write_config(tmp_path, plugins=["echo"])
    with patch("golem.cli.run_bot", new_callable=AsyncMock) as run_bot:
        main(["--config", str(path)])
    config = run_bot.call_args.args[0]
    assert config.plugins == ["echo"]


def test_list_plugins(capsys):
    main(["--list-plugins"])
    assert capsys.readouterr().out.split() == ["ctcp", "echo", "joke", "url", "webhook"]


@pytest.mark.asyncio
async def test_run_bot_closes_the_connection():
    conn = FakeConnection()
    golem = Golem(conn, [])
    with patch("golem.cli.Golem.from_config", new=AsyncMock(return_value=golem)):
        with pytest.raises(StreamEndedError):
            await run_bot(GolemConfig())
    assert conn.closed
