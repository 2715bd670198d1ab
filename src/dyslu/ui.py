"""Terminal chat screen rendered with rich."""

from __future__ import annotations

import asyncio
import sys
import threading

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from dyslu.models import RevealState, Role, TurnRecord
from dyslu.session import VoiceChatSession

CURSOR = "▍"
_QUIT_COMMANDS = {"q", "quit", "exit"}


def level_bar(level: float, width: int = 24) -> str:
    filled = round(max(0.0, min(1.0, level)) * width)
    return "█" * filled + "░" * (width - filled)


class ConsoleShell:
    """Renders session state and turns Enter presses into record toggles."""

    def __init__(
        self,
        session: VoiceChatSession,
        *,
        assistant_name: str = "Dyslu",
        console: Console | None = None,
        refresh_per_second: int = 20,
    ) -> None:
        self._session = session
        self._assistant_name = assistant_name
        self._console = console or Console()
        self._refresh_per_second = refresh_per_second
        self._level = 0.0
        self._level_task: asyncio.Task | None = None

    def render(self) -> RenderableType:
        parts: list[RenderableType] = [
            Panel(
                Text("Your chat history appears here", style="dim"),
                title=f"Conversation with {self._assistant_name}",
                title_align="left",
            )
        ]

        records = self._session.pipeline.log.all()
        if not records:
            parts.append(
                Align.center(Text("No messages yet\nStart speaking to begin the conversation", style="dim", justify="center"))
            )
        parts.extend(self._render_record(record) for record in records)

        error = self._session.current_error
        if error is not None:
            parts.append(Panel(Text(error.message), title="Error", title_align="left", border_style="red"))

        if self._session.is_processing:
            parts.append(Align.center(Text("• • •", style="bold blue")))

        status = Text(self._session.status_label, style="red" if self._session.is_recording else "green")
        if self._session.is_recording:
            status.append(f"  {level_bar(self._level)}", style="red")
        parts.append(status)
        return Group(*parts)

    def _render_record(self, record: TurnRecord) -> RenderableType:
        body = Text(record.visible_text)
        if record.role == Role.USER:
            return Align.right(Panel(body, title="You", title_align="right", border_style="green", expand=False))

        if record.reveal_state == RevealState.REVEALING:
            body.append(CURSOR, style="blink blue")
        return Align.left(
            Panel(body, title=self._assistant_name, title_align="left", border_style="blue", expand=False)
        )

    def toggle(self) -> None:
        was_recording = self._session.is_recording
        self._session.toggle()
        if not was_recording and self._session.is_recording:
            self._level_task = asyncio.create_task(self._follow_levels(), name="dyslu-levels")

    async def _follow_levels(self) -> None:
        async for level in self._session.capture.levels():
            self._level = level
        self._level = 0.0

    async def run(self) -> None:
        """Interactive loop: Enter toggles recording, ``q`` quits."""
        loop = asyncio.get_running_loop()
        commands: asyncio.Queue[str] = asyncio.Queue()

        def _read_stdin() -> None:
            for line in sys.stdin:
                loop.call_soon_threadsafe(commands.put_nowait, line)
            loop.call_soon_threadsafe(commands.put_nowait, "q")

        threading.Thread(target=_read_stdin, name="dyslu-stdin", daemon=True).start()
        frame_seconds = 1 / self._refresh_per_second
        try:
            with Live(self.render(), console=self._console, auto_refresh=False) as live:
                while True:
                    try:
                        command = await asyncio.wait_for(commands.get(), timeout=frame_seconds)
                    except asyncio.TimeoutError:
                        command = None
                    if command is not None:
                        if command.strip().lower() in _QUIT_COMMANDS:
                            break
                        self.toggle()
                    live.update(self.render(), refresh=True)
        finally:
            if self._level_task is not None:
                self._level_task.cancel()
            await self._session.close()
