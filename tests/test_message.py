"""Tests for the IRC message model."""

import pytest

from golem.irc.message import (
    Message,
    MessageParseError,
    ctcp_query,
    ctcp_reply,
    privmsg,
)


class TestParse:
    def test_privmsg(self):
        msg = Message.parse(":alice!al@example.org PRIVMSG #chan :hello there\r\n")
        assert msg.command == "PRIVMSG"
        assert msg.params == ("#chan", "hello there")
        assert msg.prefix == "alice!al@example.org"

    def test_no_prefix(self):
        msg = Message.parse("PING :irc.example.net")
        assert msg.prefix is None
        assert msg.params == ("irc.example.net",)

    def test_numeric(self):
        msg = Message.parse(":irc.example.net 001 golem :Welcome to the network")
        assert msg.command == "001"
        assert msg.params == ("golem", "Welcome to the network")

    def test_trailing_with_colons(self):
        msg = Message.parse(":a!b@c PRIVMSG #chan :look: a :colon")
        assert msg.text == "look: a :colon"

    def test_empty_trailing(self):
        msg = Message.parse(":a!b@c PRIVMSG #chan :")
        assert msg.params == ("#chan", "")

    def test_command_is_uppercased(self):
        assert Message.parse("privmsg #chan :hi").command == "PRIVMSG"

    def test_tags(self):
        msg = Message.parse("@time=2024-01-01T00:00:00Z;msgid=a\\sb :a!b@c PRIVMSG #c :hi")
        assert msg.tags == {"time": "2024-01-01T00:00:00Z", "msgid": "a b"}
        assert msg.text == "hi"

    @pytest.mark.parametrize("line", ["", "   ", "\r\n", ":prefix.only"])
    def test_invalid(self, line):
        with pytest.raises(MessageParseError):
            Message.parse(line)


class TestSerialize:
    def test_trailing_gets_colon_when_needed(self):
        assert privmsg("#chan", "hello world").serialize() == "PRIVMSG #chan :hello world"

    def test_single_word_trailing(self):
        assert Message("NICK", ("golem",)).serialize() == "NICK golem"

    def test_empty_and_colon_trailing(self):
        assert privmsg("#chan", "").serialize() == "PRIVMSG #chan :"
        assert privmsg("#chan", ":)").serialize() == "PRIVMSG #chan ::)"

    @pytest.mark.parametrize("target", ["#dev x", "", ":chan"])
    def test_invalid_middle_parameter_raises(self, target):
        with pytest.raises(ValueError):
            privmsg(target, "hello").serialize()

    def test_parse_back(self):
        line = ":alice!a@h PRIVMSG #chan :some text"
        assert Message.parse(line).serialize() == line


class TestAccessors:
    def test_source_nickname(self):
        assert Message.parse(":alice!a@h PRIVMSG #c :x").source_nickname == "alice"
        assert Message.parse(":alice@h PRIVMSG #c :x").source_nickname == "alice"
        assert Message.parse(":alice PRIVMSG #c :x").source_nickname == "alice"

    def test_server_has_no_nickname(self):
        assert Message.parse(":irc.example.net NOTICE * :hi").source_nickname is None
        assert Message.parse("PING :x").source_nickname is None

    def test_is_privmsg(self):
        assert Message.parse(":a!b@c PRIVMSG #c :x").is_privmsg
        assert not Message.parse(":a!b@c NOTICE #c :x").is_privmsg
        assert not Message.parse(":a!b@c JOIN #c").is_privmsg

    def test_response_target_channel(self):
        assert Message.parse(":a!b@c PRIVMSG #chan :x").response_target == "#chan"

    def test_response_target_query(self):
        assert Message.parse(":alice!b@c PRIVMSG golem :x").response_target == "alice"

    def test_response_target_absent(self):
        assert Message.parse(":a!b@c JOIN #chan").response_target is None
        assert Message.parse("PING :x").response_target is None


class TestCtcp:
    def test_query(self):
        msg = ctcp_query("golem", "PING", "12345")
        assert msg.text == "\x01PING 12345\x01"
        assert Message.parse(":a!b@c " + msg.serialize()).ctcp == ("PING", "12345")

    def test_reply_is_notice(self):
        msg = ctcp_reply("alice", "VERSION", "golem 1.0")
        assert msg.command == "NOTICE"
        assert msg.ctcp == ("VERSION", "golem 1.0")

    def test_plain_text_is_not_ctcp(self):
        assert privmsg("#c", "hello").ctcp is None
