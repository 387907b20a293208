"""Data models: OutputConfig, ConnectorState, Profile, directive text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

log = logging.getLogger(__name__)

VIRTUAL_PROFILES = {
    "common": "Set all connected outputs to the largest common resolution in cloned mode",
    "horizontal": "Stack all connected outputs horizontally at their largest resolution",
    "vertical": "Stack all connected outputs vertically at their largest resolution",
}

_MODE_RE = re.compile(r"^(\d+)x(\d+)")
_POS_RE = re.compile(r"^(-?\d+)x(-?\d+)$")


class DirectiveError(ValueError):
    """A directive line could not be understood."""


# ── Enums ────────────────────────────────────────────────────────────────

class Rotation(Enum):
    NORMAL = "normal"
    LEFT = "left"
    RIGHT = "right"
    INVERTED = "inverted"

    @property
    def is_rotated(self) -> bool:
        """True if width/height are swapped."""
        return self in (Rotation.LEFT, Rotation.RIGHT)


def mode_size(mode: str) -> tuple[int, int]:
    """Return (width, height) of a mode name such as ``1920x1080i``."""
    m = _MODE_RE.match(mode)
    if not m:
        raise DirectiveError(f"Not a mode: {mode!r}")
    return int(m.group(1)), int(m.group(2))


# ── OutputConfig ─────────────────────────────────────────────────────────

@dataclass
class OutputConfig:
    name: str = ""              # e.g. "eDP-1", "HDMI-1"
    enabled: bool = True
    mode: str = ""              # e.g. "1920x1080", as reported by xrandr
    x: int = 0
    y: int = 0
    rotation: Rotation = Rotation.NORMAL
    primary: bool = False
    same_as: str = ""

    # Directives we do not interpret, forwarded verbatim as --key value
    extra: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def off(cls, name: str) -> OutputConfig:
        return cls(name=name, enabled=False)

    def to_lines(self) -> list[str]:
        """Directive lines for this output."""
        lines = [f"output {self.name}"]
        if not self.enabled:
            lines.append("off")
            return lines
        if self.mode:
            lines.append(f"mode {self.mode}")
        lines.append(f"pos {self.x}x{self.y}")
        lines.append(f"rotate {self.rotation.value}")
        if self.primary:
            lines.append("primary")
        if self.same_as:
            lines.append(f"same-as {self.same_as}")
        for key, value in self.extra:
            lines.append(f"{key} {value}".rstrip())
        return lines

    def to_xrandr_args(self) -> list[str]:
        """Generate xrandr arguments for this output (without the ``xrandr`` prefix)."""
        if not self.enabled:
            return ["--output", self.name, "--off"]

        args = ["--output", self.name, "--mode", self.mode,
                "--pos", f"{self.x}x{self.y}", "--rotate", self.rotation.value]
        if self.primary:
            args.append("--primary")
        if self.same_as:
            args += ["--same-as", self.same_as]
        for key, value in self.extra:
            args.append(f"--{key}")
            if value:
                args.append(value)
        return args


# ── Live connector state ─────────────────────────────────────────────────

@dataclass
class ConnectorState:
    name: str = ""
    connected: bool = False
    enabled: bool = False       # has an active geometry
    mode: str = ""
    x: int = 0
    y: int = 0
    rotation: Rotation = Rotation.NORMAL
    primary: bool = False
    reflect: str = ""           # "x", "y" or "xy"

    # Available modes in the order xrandr lists them (first is preferred)
    modes: list[str] = field(default_factory=list)

    def to_output_config(self) -> OutputConfig:
        """Describe this connector's current state as a directive record."""
        if not (self.connected and self.enabled):
            return OutputConfig.off(self.name)
        return OutputConfig(
            name=self.name, mode=self.mode, x=self.x, y=self.y,
            rotation=self.rotation, primary=self.primary,
            extra=[("reflect", self.reflect)] if self.reflect else [],
        )


# ── Profile ──────────────────────────────────────────────────────────────

@dataclass
class Profile:
    name: str = ""
    setup: str | None = None    # fingerprint captured at save time
    config: str | None = None   # directive text

    @property
    def is_virtual(self) -> bool:
        return self.name in VIRTUAL_PROFILES

    @property
    def is_stored(self) -> bool:
        return self.config is not None

    def matches(self, fingerprint: str) -> bool:
        """True if this profile was saved for the given hardware."""
        if not fingerprint or self.setup is None:
            return False
        return self.setup.strip() == fingerprint.strip()


# ── Directive text ───────────────────────────────────────────────────────

def parse_directives(text: str) -> list[OutputConfig]:
    """Tokenize directive text into one OutputConfig per ``output`` block."""
    outputs: list[OutputConfig] = []
    current: OutputConfig | None = None

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition(" ")
        value = value.strip()

        if key == "output":
            if not value:
                raise DirectiveError(f"line {lineno}: output without a name")
            current = OutputConfig(name=value)
            outputs.append(current)
            continue
        if current is None:
            log.warning("Ignoring directive outside an output block (line %d): %s", lineno, line)
            continue

        if key == "off":
            current.enabled = False
        elif key == "mode":
            current.mode = value
        elif key == "pos":
            m = _POS_RE.match(value)
            if not m:
                raise DirectiveError(f"line {lineno}: bad position {value!r}")
            current.x, current.y = int(m.group(1)), int(m.group(2))
        elif key == "rotate":
            try:
                current.rotation = Rotation(value)
            except ValueError:
                raise DirectiveError(f"line {lineno}: bad rotation {value!r}") from None
        elif key == "primary":
            current.primary = True
        elif key == "same-as":
            current.same_as = value
        else:
            current.extra.append((key, value))

    return outputs


def format_directives(outputs: list[OutputConfig]) -> str:
    """Render outputs as directive text (inverse of :func:`parse_directives`)."""
    lines: list[str] = []
    for o in outputs:
        lines.extend(o.to_lines())
    return "\n".join(lines) + "\n" if lines else ""


def canonical_directives(text: str) -> str:
    return format_directives(parse_directives(text))


def configs_equal(
    stored: str,
    live: str,
    canonical: Callable[[str], str] | None = None,
) -> bool:
    """Compare a stored config with the live one after canonicalizing both."""
    if canonical is None:
        return stored.rstrip() == live.rstrip()
    try:
        return canonical(stored) == canonical(live)
    except DirectiveError as e:
        log.warning("Cannot compare configurations: %s", e)
        return False
