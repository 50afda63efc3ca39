import pytest

from protocol import (
    IndexedMessage, ProtocolError, ServerEvent, ServerEventKind, decode_server_line,
    encode_submission, exit_command, is_exit, plain, register, scroll_down_request,
    scroll_up_request
)


def test_outbound_commands():
    assert register("Alice") == "/register Alice"
    assert plain("hello") == "hello"
    assert exit_command() == "/exit"
    assert scroll_up_request(10) == "/scroll_up 10"
    assert scroll_down_request(14) == "/scroll_down 14"


def test_indexed_message_parse():
    assert IndexedMessage.parse("7 hi there") == IndexedMessage(7, "hi there")
    assert IndexedMessage.parse("8") == IndexedMessage(8, "")
    assert str(IndexedMessage(7, "hi there")) == "7 hi there"


def test_indexed_message_rejects_bad_index():
    with pytest.raises(ProtocolError):
        IndexedMessage.parse("seven hi")


def test_decode_chat_line():
    assert decode_server_line("7 hi there") == ServerEvent(
        ServerEventKind.CHAT, IndexedMessage(7, "hi there"))


def test_decode_scroll_commands():
    assert decode_server_line("/scroll_up 9 earlier msg") == ServerEvent(
        ServerEventKind.SCROLL_UP, IndexedMessage(9, "earlier msg"))
    assert decode_server_line("/scroll_down 15 later msg") == ServerEvent(
        ServerEventKind.SCROLL_DOWN, IndexedMessage(15, "later msg"))


@pytest.mark.parametrize("line", ["", "   ", "/unknown 1 x", "/register", "not-a-number body",
                                  "/scroll_up"])
def test_decode_ignores_anomalies(line):
    assert decode_server_line(line) is None


def test_encode_submission():
    assert encode_submission("hello") == "hello"
    assert encode_submission("/exit") == "/exit"
    assert encode_submission("/whois bob") == "/whois bob"
    assert encode_submission("") is None


def test_is_exit():
    assert is_exit("/exit")
    assert not is_exit("/exiting")
    assert not is_exit("exit")
