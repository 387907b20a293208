"""Compile directive records into xrandr invocations."""

from __future__ import annotations

import logging

from .models import OutputConfig
from .xrandr import XRandR

log = logging.getLogger(__name__)


class ConfigApplier:
    """Applies outputs in at most two xrandr calls: all disables, then all enables.

    Outputs are never changed one at a time.
    """

    def __init__(self, xrandr: XRandR) -> None:
        self._xrandr = xrandr

    def compile(self, outputs: list[OutputConfig]) -> list[list[str]]:
        """Return the argument lists of the non-empty batches, disables first."""
        disable: list[str] = []
        enable: list[str] = []
        for o in outputs:
            if not o.enabled:
                disable += o.to_xrandr_args()
            elif o.mode:
                enable += o.to_xrandr_args()
            else:
                log.warning("Skipping output %s: no mode given", o.name)
        return [batch for batch in (disable, enable) if batch]

    def apply(self, outputs: list[OutputConfig]) -> int:
        """Apply *outputs*; returns the number of xrandr invocations made."""
        batches = self.compile(outputs)
        if not batches:
            log.info("Nothing to apply")
        for args in batches:
            self._xrandr.apply(args)
        return len(batches)
