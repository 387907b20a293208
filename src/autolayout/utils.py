"""Utility helpers: XDG paths, file I/O, settings, run lock."""

from __future__ import annotations

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator

log = logging.getLogger(__name__)

APP_NAME = "autolayout"

# Program names that select the disper defaults
DISPER_IDENTITIES = ("autodisper", "auto-disper")


class FingerprintMethod(Enum):
    SYSFS_EDID = "sysfs-edid"
    XRANDR_EDID = "xrandr-edid"
    DISPER = "disper"


class ConfigMethod(Enum):
    XRANDR = "xrandr"
    DISPER = "disper"


def config_dir() -> Path:
    """Return ~/.config/autolayout, creating it if needed."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    d = base / APP_NAME
    d.mkdir(parents=True, exist_ok=True)
    return d


def profiles_dir() -> Path:
    """Return the profiles subdirectory."""
    d = config_dir() / "profiles"
    d.mkdir(parents=True, exist_ok=True)
    return d


def read_json(path: Path) -> dict | list | None:
    """Read and parse a JSON file, returning None on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None


def read_text(path: Path) -> str | None:
    """Read a text file, returning None if it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def write_text(path: Path, text: str) -> None:
    """Write text to a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def is_executable(path: Path) -> bool:
    """Return True if *path* is a regular file we may execute."""
    return path.is_file() and os.access(path, os.X_OK)


# ── Settings ─────────────────────────────────────────────────────────────

@dataclass
class Settings:
    xrandr: str = "xrandr"
    disper: str = "disper"
    fingerprint_methods: list[FingerprintMethod] = field(
        default_factory=lambda: [FingerprintMethod.SYSFS_EDID, FingerprintMethod.XRANDR_EDID]
    )
    config_method: ConfigMethod = ConfigMethod.XRANDR
    profiles_dir: Path | None = None

    @classmethod
    def for_program(cls, prog: str) -> Settings:
        """Defaults for the given program name (disper flavour or xrandr)."""
        if Path(prog).name in DISPER_IDENTITIES:
            log.info("Assuming disper defaults...")
            return cls(
                fingerprint_methods=[FingerprintMethod.DISPER],
                config_method=ConfigMethod.DISPER,
            )
        return cls()

    def update(self, data: dict) -> None:
        """Merge declarative key/value settings, skipping anything invalid."""
        for key, value in data.items():
            try:
                if key in ("xrandr", "disper"):
                    if not isinstance(value, str) or not value:
                        raise ValueError("expected a non-empty string")
                    setattr(self, key, value)
                elif key == "fingerprint_methods":
                    if isinstance(value, str):
                        value = value.split()
                    if not isinstance(value, list):
                        raise ValueError("expected a list of method names")
                    self.fingerprint_methods = [FingerprintMethod(v) for v in value]
                elif key == "config_method":
                    self.config_method = ConfigMethod(value)
                elif key == "profiles_dir":
                    if not isinstance(value, str) or not value:
                        raise ValueError("expected a path")
                    self.profiles_dir = Path(value).expanduser()
                else:
                    log.warning("Ignoring unknown setting %r", key)
            except ValueError as e:
                log.warning("Ignoring invalid setting %s=%r: %s", key, value, e)


def settings_path() -> Path:
    """Return the path to the settings file."""
    return config_dir() / "settings.json"


def load_settings(prog: str = APP_NAME, path: Path | None = None) -> Settings:
    """Build settings from program defaults plus the JSON settings file."""
    settings = Settings.for_program(prog)
    path = path or settings_path()
    if not path.exists():
        return settings
    data = read_json(path)
    if not isinstance(data, dict):
        log.warning("Ignoring malformed settings file %s", path)
        return settings
    log.debug("Loading configuration from %s", path)
    settings.update(data)
    return settings


# ── Run lock ─────────────────────────────────────────────────────────────

@contextmanager
def run_lock(directory: Path) -> Iterator[bool]:
    """Hold an exclusive, non-blocking lock on *directory*/.lock.

    Yields False (without waiting) when another run holds the lock.
    """
    directory.mkdir(parents=True, exist_ok=True)
    with open(directory / ".lock", "a") as fh:
        try:
            fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            yield False
            return
        try:
            yield True
        finally:
            fcntl.flock(fh, fcntl.LOCK_UN)
