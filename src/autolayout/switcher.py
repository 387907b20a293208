"""Detect the matching profile and switch to it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Protocol

from .applier import ConfigApplier
from .disper import Disper
from .fingerprint import FingerprintEngine
from .hooks import HookRunner
from .layout import virtual_layout
from .models import Profile, canonical_directives, configs_equal, format_directives, parse_directives
from .profile_manager import ProfileManager
from .utils import ConfigMethod, Settings
from .xrandr import DisplayToolError, XRandR

log = logging.getLogger(__name__)


class Backend(Protocol):
    """Reads the live configuration and loads stored configuration text."""

    canonical: Callable[[str], str] | None

    def current_config(self) -> str: ...

    def load_config(self, text: str) -> None: ...


class XRandRBackend:
    canonical = staticmethod(canonical_directives)

    def __init__(self, xrandr: XRandR, applier: ConfigApplier) -> None:
        self._xrandr = xrandr
        self._applier = applier

    def current_config(self) -> str:
        return format_directives(self._xrandr.current_config())

    def load_config(self, text: str) -> None:
        self._applier.apply(parse_directives(text))


class DisperBackend:
    canonical = None

    def __init__(self, disper: Disper) -> None:
        self._disper = disper

    def current_config(self) -> str:
        return self._disper.current_config()

    def load_config(self, text: str) -> None:
        self._disper.import_config(text)


class Switcher:
    """Sequences fingerprinting, matching, hooks and applying."""

    def __init__(
        self,
        profiles: ProfileManager,
        fingerprinter: FingerprintEngine,
        hooks: HookRunner,
        backend: Backend,
        xrandr: XRandR,
        applier: ConfigApplier,
    ) -> None:
        self.profiles = profiles
        self._fingerprinter = fingerprinter
        self._hooks = hooks
        self._backend = backend
        self._xrandr = xrandr
        self._applier = applier

    @classmethod
    def from_settings(cls, settings: Settings) -> Switcher:
        xrandr = XRandR(settings.xrandr)
        disper = Disper(settings.disper)
        applier = ConfigApplier(xrandr)
        profiles = ProfileManager(settings.profiles_dir)
        if settings.config_method is ConfigMethod.DISPER:
            backend: Backend = DisperBackend(disper)
        else:
            backend = XRandRBackend(xrandr, applier)
        return cls(
            profiles=profiles,
            fingerprinter=FingerprintEngine(settings.fingerprint_methods, xrandr, disper),
            hooks=HookRunner(profiles),
            backend=backend,
            xrandr=xrandr,
            applier=applier,
        )

    def fingerprint(self) -> str:
        return self._fingerprinter.fingerprint()

    def current_config(self) -> str:
        return self._backend.current_config()

    def save(self, name: str) -> Path:
        """Save the live fingerprint and configuration as profile *name*."""
        setup = self.fingerprint()
        config = self.current_config()
        path = self.profiles.save(name, setup, config)
        log.info("Saved current configuration as profile '%s'", name)
        return path

    def config_equal(self, profile: Profile) -> bool:
        if profile.config is None:
            return False
        try:
            live = self.current_config()
        except DisplayToolError as e:
            log.error("Cannot query the current configuration: %s", e)
            return False
        if configs_equal(profile.config, live, self._backend.canonical):
            log.info("Config already loaded")
            return True
        return False

    def load(self, name: str) -> bool:
        """Switch to profile *name* unconditionally. Returns False if applying failed.

        Raises ProfileNotFound for unknown names.
        """
        profile = self.profiles.load(name)
        self._hooks.run_pre(name)
        ok = True
        try:
            if profile.is_stored:
                log.info("Loading profile %s", name)
                self._backend.load_config(profile.config)
            else:
                self._applier.apply(virtual_layout(name, self._xrandr.connectors()))
        except (DisplayToolError, ValueError) as e:
            log.error("Failed to apply profile %s: %s", name, e)
            ok = False
        self._hooks.run_post(name)
        return ok

    def detect(self, *, change: bool = False, force: bool = False, default: str | None = None) -> int:
        """List profiles, marking the detected one; returns the exit status.

        The first unblocked profile whose setup matches wins. With *change*
        it is loaded unless the live config already equals it (or *force*).
        """
        current = self.fingerprint()
        for name in self.profiles.list_profiles():
            if self._hooks.blocked(name):
                print(f"{name} (blocked)")
                continue
            profile = self.profiles.load(name)
            if not profile.matches(current):
                print(name)
                continue
            print(f"{name} (detected)")
            if change and (force or not self.config_equal(profile)):
                self.load(name)
            return 0

        if default:
            log.info("No suitable configuration found, loading default: %s", default)
            self.load(default)
            return 0
        return 1
