"""Profile management: save, load and list profiles."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import VIRTUAL_PROFILES, Profile
from .utils import profiles_dir, read_text, write_text

log = logging.getLogger(__name__)

SETUP_FILE = "setup"
CONFIG_FILE = "config"


class ProfileNotFound(LookupError):
    """Neither a stored nor a virtual profile has this name."""


class ReservedProfileName(ValueError):
    """The name belongs to a virtual profile and cannot be saved."""


class ProfileManager:
    """Manages profiles stored as one directory per profile."""

    def __init__(self, directory: Path | None = None) -> None:
        self._dir = directory or profiles_dir()

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid profile name: {name!r}")
        return self._dir / name

    def hook_path(self, hook: str, name: str | None = None) -> Path:
        """Path of a hook script, global when *name* is None."""
        if name is None:
            return self._dir / hook
        return self._path_for(name) / hook

    def exists(self, name: str) -> bool:
        return (self._path_for(name) / CONFIG_FILE).is_file()

    def list_profiles(self) -> list[str]:
        """Return sorted list of stored profile names."""
        if not self._dir.is_dir():
            return []
        return sorted(
            p.name for p in self._dir.iterdir()
            if p.is_dir() and (p / CONFIG_FILE).is_file()
        )

    def load(self, name: str) -> Profile:
        """Load a stored profile, falling back to a virtual one."""
        path = self._path_for(name)
        config = read_text(path / CONFIG_FILE)
        if config is not None:
            if name in VIRTUAL_PROFILES:
                log.warning("Existing profile %s overrides virtual profile with same name", name)
            return Profile(name=name, setup=read_text(path / SETUP_FILE), config=config)
        if name in VIRTUAL_PROFILES:
            return Profile(name=name)
        raise ProfileNotFound(f"Profile '{name}' does not exist")

    def save(self, name: str, setup: str, config: str) -> Path:
        """Persist fingerprint and config text. Returns the profile directory."""
        if name in VIRTUAL_PROFILES:
            raise ReservedProfileName(
                f"Cannot save current configuration as profile '{name}': "
                "This configuration name is a reserved virtual configuration."
            )
        path = self._path_for(name)
        write_text(path / SETUP_FILE, setup.rstrip("\n") + "\n")
        write_text(path / CONFIG_FILE, config.rstrip("\n") + "\n")
        return path
