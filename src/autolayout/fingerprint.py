"""Fingerprint the connected displays into a stable identity string."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Callable, Iterable, Protocol

import pyudev

from .disper import Disper
from .utils import FingerprintMethod
from .xrandr import XRandR, DisplayToolError

log = logging.getLogger(__name__)


class DrmDevice(Protocol):
    """The part of :class:`pyudev.Device` we rely on."""

    sys_name: str
    sys_path: str
    attributes: pyudev.Attributes


def udev_drm_connectors() -> list[DrmDevice]:
    """Return DRM connector devices (``card0-eDP-1`` and the like)."""
    context = pyudev.Context()
    return [
        d for d in context.list_devices(subsystem="drm")
        if d.sys_name.startswith("card") and "-" in d.sys_name
    ]


def _attribute(device: DrmDevice, name: str) -> bytes | None:
    try:
        return device.attributes.get(name)
    except OSError as e:
        log.debug("Cannot read %s of %s: %s", name, device.sys_name, e)
        return None


def _read_edid(device: DrmDevice) -> bytes:
    """Raw EDID bytes of a connector; udev attribute strings stop at the first NUL."""
    try:
        return (Path(device.sys_path) / "edid").read_bytes()
    except OSError as e:
        log.debug("Cannot read EDID of %s: %s", device.sys_name, e)
        return b""


def _join(entries: Iterable[tuple[str, str]]) -> str:
    """Canonical form: one ``<connector> <id>`` line per display, sorted by connector."""
    return "\n".join(f"{name} {ident}" for name, ident in sorted(entries))


class FingerprintEngine:
    """Tries each configured fingerprint method until one yields a result."""

    def __init__(
        self,
        methods: list[FingerprintMethod],
        xrandr: XRandR,
        disper: Disper | None = None,
        drm_connectors: Callable[[], Iterable[DrmDevice]] | None = None,
    ) -> None:
        self._methods = list(methods)
        self._xrandr = xrandr
        self._disper = disper or Disper()
        self._drm_connectors = drm_connectors or udev_drm_connectors
        self._strategies: dict[FingerprintMethod, Callable[[], str]] = {
            FingerprintMethod.SYSFS_EDID: self._sysfs_edid,
            FingerprintMethod.XRANDR_EDID: self._xrandr_edid,
            FingerprintMethod.DISPER: self._disper_listing,
        }

    def fingerprint(self) -> str:
        """Return the canonical fingerprint, or "" if no method produced one."""
        for method in self._methods:
            try:
                fp = self._strategies[method]()
            except (DisplayToolError, OSError) as e:
                log.warning("Fingerprint method %s failed: %s", method.value, e)
                continue
            if fp:
                log.debug("Fingerprint from %s:\n%s", method.value, fp)
                return fp
        log.warning("Unable to fingerprint display configuration")
        return ""

    def _sysfs_edid(self) -> str:
        # Querying xrandr makes the kernel reload EDID data
        try:
            self._xrandr.query()
        except DisplayToolError as e:
            log.debug("EDID refresh query failed: %s", e)
        entries = []
        for device in self._drm_connectors():
            status = _attribute(device, "status")
            if status is None or status.decode(errors="replace").strip() != "connected":
                continue
            edid = _read_edid(device)
            entries.append((device.sys_name, hashlib.md5(edid).hexdigest()))
        return _join(entries)

    def _xrandr_edid(self) -> str:
        return _join(self._xrandr.edids().items())

    def _disper_listing(self) -> str:
        # "display <id>: <description>" lines; the id leads each line
        return "\n".join(sorted(self._disper.list_displays()))
