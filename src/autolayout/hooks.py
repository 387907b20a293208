"""Block, preswitch and postswitch hook scripts."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .profile_manager import ProfileManager
from .utils import is_executable

log = logging.getLogger(__name__)

BLOCK = "block"
PRESWITCH = "preswitch"
POSTSWITCH = "postswitch"


class HookRunner:
    """Runs the optional executables found next to the profiles."""

    def __init__(self, profiles: ProfileManager) -> None:
        self._profiles = profiles

    def _run(self, path: Path, profile: str) -> int | None:
        """Run *path* with the profile name; returns its exit status."""
        if not is_executable(path):
            return None
        log.debug("Running hook %s %s", path, profile)
        try:
            return subprocess.run([str(path), profile]).returncode
        except OSError as e:
            log.warning("Cannot run hook %s: %s", path, e)
            return None

    def blocked(self, profile: str) -> bool:
        """True if the profile's block script exists and exits 0."""
        return self._run(self._profiles.hook_path(BLOCK, profile), profile) == 0

    def _run_switch(self, hook: str, profile: str) -> None:
        for path in (self._profiles.hook_path(hook), self._profiles.hook_path(hook, profile)):
            status = self._run(path, profile)
            if status:
                log.warning("Hook %s exited with status %d", path, status)

    def run_pre(self, profile: str) -> None:
        self._run_switch(PRESWITCH, profile)

    def run_post(self, profile: str) -> None:
        self._run_switch(POSTSWITCH, profile)
