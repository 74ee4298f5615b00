"""Output formatting for rabot."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape


@dataclass
class OutputContext:
    """Context for user-facing output.

    ``console`` writes to stderr so wrapped commands keep stdout to themselves.
    """

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data to stdout."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print a one-line error.

        Errors go to the console even in JSON mode so automation still sees
        them on stderr.
        """
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        self.console.print(f"[red]Error: {escape(message)}[/red]", soft_wrap=True)

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{escape(message)}[/green]", soft_wrap=True)


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a stderr-bound default if the CLI has not initialized one.
    """
    if _ctx is None:
        return OutputContext(Console(stderr=True))
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
