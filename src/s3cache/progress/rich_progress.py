"""Rich transfer bars for cache downloads and uploads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)


if TYPE_CHECKING:
    from types import TracebackType

    from rich.console import Console

    from s3cache.core.ports import ProgressCallback


_STYLES = {"download": "cyan", "upload": "magenta"}


def _label(name: str) -> str:
    direction, _, key = name.partition(" ")
    style = _STYLES.get(direction)
    if style is None or not key:
        return name
    return f"[{style}]{direction}[/] [bold]{key}[/]"


class RichProgressReporter:
    """ProgressReporter drawing one Rich bar per archive transfer.

    Task names follow the orchestrator's "download <key>" and "upload <key>"
    convention; the direction is coloured. Ranged downloads report from
    worker threads, which Rich's Progress tolerates. A download starts with
    an unknown total and each callback carries the object size.

    Example:
        with RichProgressReporter() as reporter:
            CacheOrchestrator(..., progress=reporter).restore()
    """

    def __init__(self, console: Console | None = None) -> None:
        """Build the display; nothing is drawn until a task starts.

        Args:
            console: Rich console to draw on. Defaults to stdout.
        """
        self._progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
        )
        self._tasks: dict[str, TaskID] = {}
        self._live = False

    def _ensure_live(self) -> None:
        if not self._live:
            self._progress.start()
            self._live = True

    def __enter__(self) -> RichProgressReporter:
        self._ensure_live()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._live:
            self._progress.stop()
            self._live = False

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Add a bar for one transfer and return its byte callback.

        Args:
            name: Task name, e.g. "download deps-abc".
            total: Size in bytes, or 0 when the size is not known yet.
        """
        self._ensure_live()
        task_id = self._progress.add_task(_label(name), total=total or None)
        self._tasks[name] = task_id

        def advance(done: int, size: int) -> None:
            self._progress.update(task_id, completed=done, total=size)

        return advance

    def finish_task(self, name: str) -> None:
        """Fill the bar for name, if its size is known. Unknown names are ignored."""
        task_id = self._tasks.pop(name, None)
        if task_id is None:
            return
        task = next(t for t in self._progress.tasks if t.id == task_id)
        if task.total is not None:
            self._progress.update(task_id, completed=task.total)
