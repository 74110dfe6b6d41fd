"""Full-screen timer UI for focus sessions."""

from __future__ import annotations

import asyncio

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from streakpro_cli.models import HistoryRecord
from streakpro_cli.models.focus.duration import progress_percent, to_clock
from streakpro_cli.models.focus.engine import FocusSessionEngine, SessionCompleted

FOCUS_KEYS = "space start/pause  •  b break  •  e end"
BREAK_KEYS = "space pause/resume  •  s skip  •  f back to focus  •  e end"


class TimerDisplay:
    """Manages the fullscreen timer display."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def create_layout(self, title: str, engine: FocusSessionEngine) -> Layout:
        """Create the timer layout with all components."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        state = engine.state
        if engine.finished:
            header, color = "SESSION FINISHED", "green"
        elif state.mode == "break":
            header, color = "BREAK", "magenta"
        elif not state.is_running:
            header, color = "PAUSED", "yellow"
        else:
            header, color = "StreakPro Focus", "cyan"

        header_text = Text(header, style=f"bold {color}", justify="center")
        layout["header"].update(Align.center(header_text, vertical="middle"))
        layout["body"].update(Align.center(self._create_body_content(title, engine), vertical="middle"))

        hints = BREAK_KEYS if state.mode == "break" else FOCUS_KEYS
        layout["footer"].update(Align.center(Text(hints, style="dim", justify="center"), vertical="middle"))
        return layout

    def _create_body_content(self, title: str, engine: FocusSessionEngine) -> Group:
        """Create the main body content."""
        state = engine.state
        config = engine.config
        components = []

        if title:
            components.append(Text(title[:50], style="bold white", justify="center"))
            components.append(Text(""))

        remaining = state.remaining_seconds
        if state.mode == "break":
            timer_color = "magenta"
            total = config.break_seconds
        else:
            total = config.focus_seconds
            if not state.is_running:
                timer_color = "yellow"
            elif remaining < 60:
                timer_color = "red"
            else:
                timer_color = "cyan"

        components.append(Text(to_clock(remaining), style=f"bold {timer_color}", justify="center"))
        components.append(Text(""))

        pct = progress_percent(total, remaining)
        bar_width = 40
        filled = int(bar_width * pct / 100)
        progress = Text(justify="center")
        progress.append("▓" * filled + "░" * (bar_width - filled) + f"  {pct}%", style="dim")
        components.append(progress)

        components.append(Text(""))
        if state.mode == "break":
            components.append(
                Text(f"On break for {to_clock(engine.break_elapsed())}", style="magenta", justify="center")
            )
        components.append(
            Text(
                f"Focused {to_clock(engine.focus_elapsed())}  •  "
                f"breaks left {state.remaining_breaks}/{config.break_budget}",
                style="dim",
                justify="center",
            )
        )
        return Group(*components)

    async def run(self, controller, handle) -> str:
        """
        Drive a live session until it finishes.

        Returns 'completed' when the focus budget ran out and 'ended' when
        the user ended the session.
        """
        from .keyboard import get_keyboard_handler

        keyboard = get_keyboard_handler()
        engine = handle.engine
        try:
            with Live(
                self.create_layout(handle.title, engine),
                console=self.console,
                refresh_per_second=4,
                screen=True,
            ) as live:
                while not engine.finished:
                    key = keyboard.get_key()
                    if key == " ":
                        if engine.mode == "break":
                            if engine.is_running:
                                controller.pause_break(handle)
                            else:
                                controller.resume_break(handle)
                        elif engine.is_running:
                            controller.pause(handle)
                        else:
                            controller.start_focus(handle)
                    elif key == "b":
                        controller.take_break(handle)
                    elif key == "s":
                        controller.skip_break(handle)
                    elif key == "f":
                        controller.return_to_focus(handle)
                    elif key == "e":
                        return "ended"

                    live.update(self.create_layout(handle.title, engine))
                    await asyncio.sleep(0.25)

                live.update(self.create_layout(handle.title, engine))
        finally:
            keyboard.stop()

        return "completed" if isinstance(handle.result, SessionCompleted) else "ended"


def show_session_summary(record: HistoryRecord, console: Console | None = None):
    """Show the recorded session after the timer closes."""
    console = console or Console()

    breaks = len([b for b in record.break_log if b.get("kind") == "completed"])
    skipped = len(record.break_log) - breaks
    panel = Panel(
        f"""[bold green]Session recorded[/bold green]

Activity: {record.title or "N/A"}
Focus time: {to_clock(record.focus_duration_seconds)}
Break time: {to_clock(record.total_break_seconds)} ({breaks} taken, {skipped} skipped)
Duration: {record.duration_minutes} minutes

History record #{record.id}""",
        border_style="green",
        padding=(1, 2),
    )

    console.print(panel)
