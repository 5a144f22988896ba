"""Spinner shown while waiting for the first bytes of an agent reply."""
from __future__ import annotations

from yaspin import yaspin

from .ansi import console


class Spinner:
    """Display a small spinner next to a prefix while work is done."""

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self._started = False
        # spinner after the text so the prefix stays at the start
        self._spinner = yaspin(text="", side="right")

    def start(self) -> None:
        if self._started:
            return
        console.print(self._prefix, end="")
        console.file.flush()
        self._spinner.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._spinner.stop()
        console.print(f"\r{self._prefix}", end="")
        console.file.flush()
        self._started = False
