"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


@dataclass
class ProgressState:
    total: int
    chunks: int = 0
    fetched: int = 0
    throttled: int = 0


class ChunkRateColumn(ProgressColumn):
    """Render chunks submitted per minute, the unit the request budget uses."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed * 60:.1f} req/min", style="progress.percentage")


class ProgressReporter:
    """Render chunk progress and maintain counters for CLI feedback."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # Non-interactive output: stay silent instead of printing every refresh
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]chunks", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            ChunkRateColumn(),
            TextColumn("[green]✓{task.fields[fetched]:>5}", justify="right"),
            TextColumn("[yellow]⏸{task.fields[throttled]:>3}", justify="right"),
            refresh_per_second=4,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.__enter__()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task("chunks", total=total, fetched=0, throttled=0)

    def advance(self, *, fetched: int, throttled: bool = False) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        self.state.chunks += 1
        self.state.fetched += fetched
        if throttled:
            self.state.throttled += 1
        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id,
                advance=1,
                fetched=self.state.fetched,
                throttled=self.state.throttled,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress.__exit__(None, None, None)
            self._progress = None
        self._task_id = None


__all__ = ["ProgressReporter", "ProgressState"]
