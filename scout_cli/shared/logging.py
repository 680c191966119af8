"""Rich-based logging helpers shared across the scout tools."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.theme import Theme
from rich.traceback import install

install(show_locals=False)

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "debug": "dim",
    }
)

# stdout carries JSON documents only; all log chatter goes to stderr.
# Highlighting stays off so table and database names are printed verbatim.
_stdout_console = Console(theme=_THEME, highlight=False)
_stderr_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(slots=True)
class Logger:
    """Lightweight logger facade backed by Rich consoles."""

    verbose: bool = False
    name: str | None = None

    @property
    def console(self) -> Console:
        return _stdout_console

    def _format(self, message: str) -> str:
        return f"[{self.name}] {message}" if self.name else message

    def info(self, message: str) -> None:
        _stderr_console.print(self._format(message), style="info", markup=False)

    def success(self, message: str) -> None:
        _stderr_console.print(self._format(message), style="success", markup=False)

    def warning(self, message: str) -> None:
        _stderr_console.print(self._format(message), style="warning", markup=False)

    def error(self, message: str) -> None:
        _stderr_console.print(self._format(message), style="error", markup=False)

    def debug(self, message: str) -> None:
        if self.verbose:
            _stderr_console.print(self._format(message), style="debug", markup=False)

    def child(self, name: str) -> Logger:
        """Return a logger sharing verbosity but tagged with another component name."""
        return Logger(verbose=self.verbose, name=name)


def get_logger(verbose: bool = False, name: str | None = None) -> Logger:
    """Return a configured Logger instance."""
    return Logger(verbose=verbose, name=name)
