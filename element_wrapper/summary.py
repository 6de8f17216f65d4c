"""
Summary counters and reporting for the element wrapper pass.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from rich.console import Console
from rich.table import Table
from rich import box

from .core.templates import get_default_template_engine
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SummaryCounters:
    """Accumulator threaded through one pass and returned at its end."""

    candidates: int = 0
    modifications: int = 0
    deletions: int = 0
    renames: List[Tuple[str, str, str]] = field(default_factory=list)


class SummaryReporter:
    """Read-only view of the counters of a finished pass."""

    def __init__(self, counters: SummaryCounters):
        self.counters = counters

    def lines(self) -> List[str]:
        """The three count lines, in fixed order."""
        return [
            f"{self.counters.candidates} candidate(s) being considered",
            f"{self.counters.modifications} modification(s) to original code",
            f"{self.counters.deletions} deletion(s) from original code",
        ]

    def render(self) -> str:
        """Render the summary text, renames included."""
        engine = get_default_template_engine()
        return engine.render_template(
            "summary",
            {
                "candidates": self.counters.candidates,
                "modifications": self.counters.modifications,
                "deletions": self.counters.deletions,
                "renames": self.counters.renames,
            },
        )

    def write(self, path: Union[str, Path]) -> Path:
        """Write the summary to a file, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        logger.info("Summary written to %s", path)
        return path

    def log(self) -> None:
        for line in self.lines():
            logger.info(line)

    def print_table(self, console: Optional[Console] = None) -> None:
        """Display the counters as a rich table."""
        console = console or Console()

        table = Table(title="Element wrapper summary", box=box.ROUNDED)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", justify="right", style="green")

        table.add_row("Candidates considered", str(self.counters.candidates))
        table.add_row("Modifications", str(self.counters.modifications))
        table.add_row("Deletions", str(self.counters.deletions))
        table.add_row("Renames", str(len(self.counters.renames)))

        console.print(table)
