"""Layouts for the virtual profiles, computed from live mode lists."""

from __future__ import annotations

import logging

from .models import ConnectorState, OutputConfig, mode_size

log = logging.getLogger(__name__)


def _mode_area(mode: str) -> int:
    w, h = mode_size(mode)
    return w * h


def common_layout(connectors: list[ConnectorState]) -> list[OutputConfig]:
    """Clone all connected outputs at their largest common mode.

    Only modes whose names appear on every connected output count; the
    largest area wins, the first in sorted order on a tie. Without a common
    mode nothing is emitted for connected outputs.
    """
    outputs = [OutputConfig.off(c.name) for c in connectors if not c.connected]
    connected = sorted((c for c in connectors if c.connected), key=lambda c: c.name)
    if not connected:
        return outputs

    common = set(connected[0].modes)
    for c in connected[1:]:
        common &= set(c.modes)

    best, best_area = "", -1
    for mode in sorted(common):
        area = _mode_area(mode)
        if area > best_area:
            best, best_area = mode, area
    if not best:
        log.warning("Connected outputs share no common mode")
        return outputs

    first = connected[0].name
    for c in connected:
        outputs.append(OutputConfig(
            name=c.name, mode=best, x=0, y=0,
            same_as="" if c.name == first else first,
        ))
    return outputs


def stack_layout(connectors: list[ConnectorState], vertical: bool = False) -> list[OutputConfig]:
    """Tile connected outputs at their preferred mode along one axis."""
    outputs: list[OutputConfig] = []
    pos_x = pos_y = 0
    for c in connectors:
        if not c.connected:
            outputs.append(OutputConfig.off(c.name))
            continue
        if not c.modes:
            log.debug("Skipping %s: no modes reported", c.name)
            continue
        mode = c.modes[0]
        outputs.append(OutputConfig(name=c.name, mode=mode, x=pos_x, y=pos_y))
        w, h = mode_size(mode)
        if vertical:
            pos_y += h
        else:
            pos_x += w
    return outputs


def virtual_layout(name: str, connectors: list[ConnectorState]) -> list[OutputConfig]:
    """Directives for the virtual profile *name*."""
    if name == "common":
        log.info("Setting largest common mode in cloned mode")
        return common_layout(connectors)
    if name == "horizontal":
        log.info("Stacking all outputs horizontally at their largest modes")
        return stack_layout(connectors)
    if name == "vertical":
        log.info("Stacking all outputs vertically at their largest modes")
        return stack_layout(connectors, vertical=True)
    raise ValueError(f"Not a virtual profile: {name!r}")
