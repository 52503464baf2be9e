"""Scan output: console rendering and in-memory collection."""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from .models import Failure, ScanStats, ScanSummary, Success


def printable(text: str) -> str:
    """Show line breaks literally so a response stays on one output line."""
    return text.replace("\r", "\\r").replace("\n", "\\n")


class BaseReporter:
    """Receives scan events from the engine. Every hook is optional."""

    def on_start(self, target: str, total: int, batch_size: int) -> None:
        pass

    def on_finding(self, outcome: Success, padding: int) -> None:
        pass

    def on_error(self, outcome: Failure) -> None:
        pass

    def on_progress(self, stats: ScanStats) -> None:
        pass

    def on_complete(self, summary: ScanSummary) -> None:
        pass

    def close(self) -> None:
        """Called once the scan ends, whether it finished or not."""
        pass


class CollectingReporter(BaseReporter):
    """Keeps every reported event in memory."""

    def __init__(self):
        self.target: Optional[str] = None
        self.total = 0
        self.findings: List[Success] = []
        self.errors: List[Failure] = []
        self.progress_updates = 0
        self.summary: Optional[ScanSummary] = None

    def on_start(self, target: str, total: int, batch_size: int) -> None:
        self.target = target
        self.total = total

    def on_finding(self, outcome: Success, padding: int) -> None:
        self.findings.append(outcome)

    def on_error(self, outcome: Failure) -> None:
        self.errors.append(outcome)

    def on_progress(self, stats: ScanStats) -> None:
        self.progress_updates += 1

    def on_complete(self, summary: ScanSummary) -> None:
        self.summary = summary


class ConsoleReporter(BaseReporter):
    """Terminal output with a live progress bar."""

    def __init__(self, console: Optional[Console] = None, show_progress: bool = True):
        self.console = console or Console(highlight=False)
        self.show_progress = show_progress
        self._progress: Optional[Progress] = None
        self._task_id = None

    def on_start(self, target: str, total: int, batch_size: int) -> None:
        self.console.print(f"Target          : [yellow]{escape(target)}[/yellow]")
        self.console.print(f"Wordlist Size   : [yellow]{total}[/yellow]")
        self.console.print(f"Batch Size      : [yellow]{batch_size}[/yellow]\n\n")

        if self.show_progress:
            self._progress = Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
            )
            self._task_id = self._progress.add_task("fuzzing", total=total)
            self._progress.start()

    def on_finding(self, outcome: Success, padding: int) -> None:
        filler = " " * max(0, padding - len(outcome.payload))
        self.console.print(
            f"\\[[green]Found![/green]]: Payload:\\[[green]{escape(outcome.payload)}[/green]]{filler} "
            f"Response: \\[[blue]{escape(printable(outcome.text))}[/blue]]"
        )

    def on_error(self, outcome: Failure) -> None:
        self.console.print(
            f"\\[[red]ERROR[/red]] Payload: \\[{escape(outcome.payload)}] "
            f"{outcome.kind.value}: {escape(outcome.message)}"
        )
        self.console.print(
            "[red]Maybe the server cannot handle this amount of requests. "
            "Try with smaller batch size --batch-size SIZE[/red]"
        )

    def on_progress(self, stats: ScanStats) -> None:
        if self._progress is not None:
            self._progress.update(self._task_id, completed=stats.completed)

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def on_complete(self, summary: ScanSummary) -> None:
        self.close()
        self.console.print(
            f"\n\n\\[[bright_green]DONE![/bright_green]] {summary.completed}/{summary.total} payloads "
            f"in {summary.duration:.2f}s | found={summary.interesting} "
            f"timeouts={summary.timeouts} errors={summary.errors}"
        )
