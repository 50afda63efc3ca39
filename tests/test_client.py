import asyncio
import socket

import pytest
from rich.text import Text
from textual import events

import client
from client import ChatApp, render_input_line, to_key_event
from config import ADDRESS_PROMPT
from editor import BACKSPACE, ENTER, UP, InputLine, KeyEvent
from session import ExitStatus, Session, SessionState
from tests.conftest import Peer
from transport import Transport, TransportError


def test_to_key_event_mapping():
    assert to_key_event("enter", "\r") == ENTER
    assert to_key_event("backspace", "\x08") == BACKSPACE
    assert to_key_event("up", None) == UP
    assert to_key_event("a", "a") == KeyEvent.printable("a")
    assert to_key_event("space", " ") == KeyEvent.printable(" ")
    assert to_key_event("tab", "\t") is None
    assert to_key_event("f1", None) is None


def test_render_input_line_marks_cursor():
    text = render_input_line(InputLine("abc", 1))
    assert isinstance(text, Text)
    assert text.plain == "> abc"

    at_end = render_input_line(InputLine("abc", 3))
    assert at_end.plain == "> abc "


async def wait_for(pilot, predicate, attempts=100):
    for _ in range(attempts):
        if predicate():
            return True
        await asyncio.sleep(0.02)
    return predicate()


@pytest.fixture
def wired_app():
    client_sock, server_sock = socket.socketpair()
    peer = Peer(server_sock)
    app = ChatApp(session_factory=lambda address: Session(Transport(client_sock)))
    yield app, peer
    client_sock.close()
    peer.close()


async def connect_and_register(app, pilot):
    await pilot.press(*"127.0.0.1:5000", "enter")
    await app.workers.wait_for_complete()
    assert await wait_for(pilot, lambda: app.stage is SessionState.CONNECTED)
    await pilot.press(*"Alice", "enter")
    assert await wait_for(pilot, lambda: app.stage is SessionState.ACTIVE)


def test_chat_flow_through_the_app(wired_app):
    app, peer = wired_app

    async def scenario():
        async with app.run_test() as pilot:
            assert await wait_for(pilot, lambda: app.chat_screen.visible_lines[:1] == [ADDRESS_PROMPT])
            await connect_and_register(app, pilot)
            assert peer.read_line() == "/register Alice"

            await pilot.press(*"hello", "enter")
            assert peer.read_line() == "hello"
            assert app.editor.line == InputLine()

            peer.send("7 hi there")
            assert await wait_for(pilot, lambda: app.chat_screen.visible_lines[-1:] == ["hi there"])

            await pilot.press("up")
            assert peer.read_line() == "/scroll_up 7"

            await pilot.press(*"/exit", "enter")
            assert peer.read_line() == "/exit"
        return app.return_code

    assert asyncio.run(scenario()) == 0


def test_connect_failure_exits_with_error():
    def refuse(address):
        raise TransportError("Connection refused")

    app = ChatApp(session_factory=refuse)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.press(*"localhost:1", "enter")
            await app.workers.wait_for_complete()
        return app.return_code

    assert asyncio.run(scenario()) == 1


def test_server_disconnect_exits_with_error(wired_app):
    app, peer = wired_app

    async def scenario():
        async with app.run_test() as pilot:
            await connect_and_register(app, pilot)
            peer.read_line()
            peer.close()
            assert await wait_for(pilot, lambda: app.stage is SessionState.TERMINATED)
        return app.return_code

    assert asyncio.run(scenario()) == 1


def test_quit_key_sends_exit(wired_app):
    app, peer = wired_app

    async def scenario():
        async with app.run_test() as pilot:
            await connect_and_register(app, pilot)
            assert peer.read_line() == "/register Alice"
            await pilot.press("ctrl+q")
            assert peer.read_line() == "/exit"
        return app.return_code

    assert asyncio.run(scenario()) == 0
    assert app.session.exit_status is ExitStatus.SUCCESS


def test_paste_types_into_input_line():
    app = ChatApp(session_factory=lambda address: None)

    async def scenario():
        async with app.run_test() as pilot:
            assert await wait_for(pilot, lambda: app.chat_screen is not None)
            app.chat_screen.on_paste(events.Paste("127.0.0.1:5000\n"))
            return app.editor.line

    assert asyncio.run(scenario()) == InputLine("127.0.0.1:5000", 14)


def test_receiver_update_after_app_exit_is_dropped():
    app = ChatApp()
    app.post_termination(ExitStatus.FAILURE, "recv: Connection reset by peer")


def test_main_releases_session_when_app_crashes(monkeypatch, session_pair):
    session, peer = session_pair

    class CrashingApp(ChatApp):
        def run(self, *args, **kwargs):
            self.session = session
            raise RuntimeError("terminal lost")

    monkeypatch.setattr(client, "ChatApp", CrashingApp)
    with pytest.raises(RuntimeError):
        client.main()
    assert session.exit_status is ExitStatus.FAILURE
    assert session.transport.socket is None
    assert peer.pending() == b""
