"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                            SCROLL CHAT CLIENT                                  ║
║                     Terminal Chat Application                                  ║
╚═══════════════════════════════════════════════════════════════════════════════╝
"""

import asyncio
import sys
from typing import Callable, List, Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.screen import Screen
from textual.widgets import Static
from rich.text import Text

from config import ADDRESS_PROMPT, INPUT_PROMPT, NAME_PROMPT
from editor import (
    BACKSPACE, DOWN, ENTER, LEFT, RIGHT, UP, EditKind, InputLine, KeyEvent, LineEditor
)
from eventlog import log
from session import ExitStatus, Session, SessionState
from transport import AddressError, TransportError


# ═══════════════════════════════════════════════════════════════════════════════
# KEYS
# ═══════════════════════════════════════════════════════════════════════════════

KEY_MAP = {
    "backspace": BACKSPACE,
    "left": LEFT,
    "right": RIGHT,
    "up": UP,
    "down": DOWN,
    "enter": ENTER,
}


def to_key_event(key: str, character: Optional[str]) -> Optional[KeyEvent]:
    """Translate a textual key press into an editor event; None for keys we ignore"""
    if key in KEY_MAP:
        return KEY_MAP[key]
    if character and len(character) == 1 and character.isprintable():
        return KeyEvent.printable(character)
    return None


def render_input_line(line: InputLine) -> Text:
    """'> ' prompt plus the line, with the cursor cell in reverse video"""
    text = Text(INPUT_PROMPT)
    text.append(line.text[:line.cursor])
    text.append(line.text[line.cursor:line.cursor + 1] or " ", style="reverse")
    text.append(line.text[line.cursor + 1:])
    return text


# ═══════════════════════════════════════════════════════════════════════════════
# SCREENS
# ═══════════════════════════════════════════════════════════════════════════════

class ChatScreen(Screen):
    """Scroll window on top, two-row input region at the bottom"""

    def __init__(self):
        super().__init__()
        self.visible_lines: List[str] = []

    def compose(self) -> ComposeResult:
        yield Static("", id="chat-window")
        yield Static("[dim]" + "─" * 200 + "[/]", id="input-separator")
        yield Static(render_input_line(InputLine()), id="input-line")

    def on_mount(self) -> None:
        self.app.screen_ready()

    def on_key(self, event: events.Key) -> None:
        key_event = to_key_event(event.key, event.character)
        if key_event is None:
            return
        event.stop()
        event.prevent_default()
        self.app.handle_key(key_event)

    def on_paste(self, event: events.Paste) -> None:
        """Pasted text arrives in one event; type it in as keys, minus line breaks"""
        event.stop()
        for char in event.text:
            key_event = to_key_event(char, char)
            if key_event is not None:
                self.app.handle_key(key_event)

    def show_window(self, lines: List[str]) -> None:
        """Clear the window region and redraw every line top to bottom"""
        chat_window = self.query_one("#chat-window", Static)
        height = chat_window.size.height
        if height and len(lines) > height:
            lines = lines[-height:]
        self.visible_lines = lines
        chat_window.update(Text("\n".join(lines)))

    def show_input(self, line: InputLine) -> None:
        self.query_one("#input-line", Static).update(render_input_line(line))


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN APP
# ═══════════════════════════════════════════════════════════════════════════════

class ChatApp(App):
    """Chat Application"""

    CSS = """
    #chat-window {
        height: 1fr;
    }

    #input-separator {
        height: 1;
        overflow: hidden;
    }

    #input-line {
        height: 1;
    }
    """

    TITLE = "Scroll Chat"
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, session_factory: Callable[[str], Session] = Session.open):
        super().__init__()
        self.session_factory = session_factory
        self.session: Optional[Session] = None
        self.stage = SessionState.DISCONNECTED
        self.editor = LineEditor()
        self.prompts: List[str] = [ADDRESS_PROMPT]
        self.chat_screen: Optional[ChatScreen] = None

    def on_mount(self) -> None:
        self.chat_screen = ChatScreen()
        self.push_screen(self.chat_screen)

    def screen_ready(self) -> None:
        self.chat_screen.show_window(self.prompts)

    # ============== Input loop ==============

    def handle_key(self, key_event: KeyEvent) -> None:
        """One key from the keyboard: edit, then act on whatever the edit produced"""
        if self.stage in (SessionState.CONNECTING, SessionState.TERMINATED):
            return

        result = self.editor.feed(key_event)
        self.chat_screen.show_input(self.editor.line)

        if self.stage is SessionState.DISCONNECTED:
            if result.kind is EditKind.SUBMITTED:
                self.stage = SessionState.CONNECTING
                self.connect_server(result.text)
        elif self.stage is SessionState.CONNECTED:
            if result.kind is EditKind.SUBMITTED:
                self.register_client(result.text)
        elif self.stage is SessionState.ACTIVE:
            if not self.session.handle(result):
                self.finish()

    @work(exclusive=True)
    async def connect_server(self, address: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            self.session = await loop.run_in_executor(None, self.session_factory, address)
        except (AddressError, TransportError) as e:
            log.log("ERROR", f"Cannot connect to {address!r}: {e}")
            self.fail(f"connect: {e}")
            return

        self.stage = SessionState.CONNECTED
        self.prompts.append(NAME_PROMPT)
        self.chat_screen.show_window(self.prompts)

    def register_client(self, name: str) -> None:
        if not self.session.register(name):
            self.finish()
            return

        self.stage = SessionState.ACTIVE
        self.chat_screen.show_window([])
        self.session.start(self.post_window, self.post_termination)

    # ============== Receive loop callbacks (receiver thread) ==============

    def post_window(self, lines: List[str]) -> None:
        self.post_to_ui(self.chat_screen.show_window, lines)

    def post_termination(self, status: ExitStatus, reason: str) -> None:
        self.post_to_ui(self.finish)

    def post_to_ui(self, callback: Callable, *args) -> None:
        try:
            self.call_from_thread(callback, *args)
        except RuntimeError:
            # the app shut down between the check and the call; nothing left to draw
            if self.is_running:
                raise
            log.log("DEBUG", "UI gone, dropping receiver update")

    # ============== Termination ==============

    def fail(self, reason: str) -> None:
        if self.stage is SessionState.TERMINATED:
            return
        self.stage = SessionState.TERMINATED
        self.exit(return_code=int(ExitStatus.FAILURE),
                  message=Text(f"Error: {reason}", style="red"))

    def finish(self) -> None:
        """Leave the app with the status the session ended with"""
        if self.stage is SessionState.TERMINATED:
            return
        session = self.session
        if session is not None and session.exit_status is ExitStatus.FAILURE:
            self.fail(session.reason)
            return
        self.stage = SessionState.TERMINATED
        self.exit(return_code=int(ExitStatus.SUCCESS))

    def close_session(self) -> None:
        """Release the connection however the app ended"""
        if self.session is not None:
            self.session.terminate(ExitStatus.FAILURE, "client stopped")

    async def action_quit(self) -> None:
        if self.session is not None:
            self.session.exit()
        self.finish()


def main():
    app = ChatApp()
    try:
        app.run()
    finally:
        app.close_session()
        log.close()
    sys.exit(app.return_code or 0)


if __name__ == '__main__':
    main()
