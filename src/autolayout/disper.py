"""Wrapper around disper, the alternate display tool."""

from __future__ import annotations

import logging

from .xrandr import run_tool

log = logging.getLogger(__name__)


class Disper:
    """Query and change the display layout via disper."""

    def __init__(self, binary: str = "disper") -> None:
        self.binary = binary

    def list_displays(self) -> list[str]:
        """Return the ``display ...`` lines of ``disper -l``."""
        out = run_tool([self.binary, "-l"])
        return [line for line in out.splitlines() if line.startswith("display ")]

    def current_config(self) -> str:
        """Return the live configuration as printed by ``disper -p``."""
        return run_tool([self.binary, "-p"])

    def import_config(self, text: str) -> None:
        """Apply a configuration previously printed by ``disper -p``."""
        log.info("disper -i")
        run_tool([self.binary, "-i"], input=text)
