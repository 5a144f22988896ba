"""Colour and styling helpers built on :mod:`rich`."""

import os
from rich.console import Console


console = Console()


class Ansi:
    """Style names shared by the CLI output."""

    BOLD = "bold"

    FG_GREEN = "green"
    FG_CYAN = "cyan"
    FG_YELLOW = "yellow"
    FG_RED = "red"

    @staticmethod
    def style(text: str, *codes: str) -> str:
        """Return *text* wrapped in rich markup unless ``NO_COLOR`` is set."""
        if os.getenv("NO_COLOR") is not None:
            return text
        style = " ".join(codes)
        return f"[{style}]{text}[/]"


USER_LABEL = Ansi.style("you", Ansi.FG_CYAN, Ansi.BOLD)
AGENT_LABEL = Ansi.style("agent", Ansi.FG_GREEN, Ansi.BOLD)
ERROR_LABEL = Ansi.style("error", Ansi.FG_RED, Ansi.BOLD)
