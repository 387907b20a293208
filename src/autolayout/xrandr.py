"""Wrapper around the xrandr command line tool."""

from __future__ import annotations

import logging
import re
import shlex
import subprocess

from .models import ConnectorState, OutputConfig, Rotation, mode_size

log = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^(\S+) (connected|disconnected|unknown connection)\b(.*)$")
_GEOMETRY_RE = re.compile(r"^(\d+)x(\d+)\+(-?\d+)\+(-?\d+)$")
_MODE_LINE_RE = re.compile(r"^\s+(\d+x\d+\S*)(.*)$")
_HEX_RE = re.compile(r"^[0-9a-f]+$")


class DisplayToolError(Exception):
    """A display tool invocation did not succeed."""


class DisplayToolMissing(DisplayToolError):
    """The display tool executable could not be started."""


class DisplayToolFailed(DisplayToolError):
    """The display tool ran but exited with a non-zero status."""

    def __init__(self, argv: list[str], returncode: int, stderr: str) -> None:
        self.argv = argv
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{shlex.join(argv)} exited with status {returncode}: {stderr.strip()}"
        )


def run_tool(argv: list[str], input: str | None = None) -> str:
    """Run a display tool synchronously and return its stdout."""
    log.debug("Running %s", shlex.join(argv))
    try:
        proc = subprocess.run(argv, input=input, capture_output=True, text=True)
    except (FileNotFoundError, PermissionError) as e:
        raise DisplayToolMissing(f"Cannot run {argv[0]}: {e}") from e
    if proc.returncode != 0:
        raise DisplayToolFailed(argv, proc.returncode, proc.stderr)
    if proc.stderr:
        log.warning("%s stderr (no error): %s", argv[0], proc.stderr.strip())
    return proc.stdout


# ── Parsing ──────────────────────────────────────────────────────────────

def parse_query(text: str) -> list[ConnectorState]:
    """Parse ``xrandr -q`` output into connector states, in report order."""
    connectors: list[ConnectorState] = []
    current: ConnectorState | None = None
    starred = ""

    def finish() -> None:
        if current is not None and current.enabled and starred:
            current.mode = starred

    for line in text.splitlines():
        header = _HEADER_RE.match(line)
        if header:
            finish()
            starred = ""
            name, state, rest = header.groups()
            current = ConnectorState(name=name, connected=state == "connected")
            connectors.append(current)
            _parse_header_tokens(current, rest.split("(")[0].split())
            continue
        if current is None:
            continue
        mode_line = _MODE_LINE_RE.match(line)
        if mode_line:
            mode, rates = mode_line.groups()
            current.modes.append(mode)
            if "*" in rates:
                starred = mode
    finish()
    return connectors


def _parse_header_tokens(conn: ConnectorState, tokens: list[str]) -> None:
    for token in tokens:
        if token == "primary":
            conn.primary = True
            continue
        geometry = _GEOMETRY_RE.match(token)
        if geometry:
            w, h, x, y = (int(g) for g in geometry.groups())
            conn.enabled = True
            conn.x, conn.y = x, y
            conn.mode = f"{w}x{h}"
            continue
        try:
            conn.rotation = Rotation(token)
        except ValueError:
            pass
    header = " ".join(tokens)
    if "X and Y axis" in header:
        conn.reflect = "xy"
    elif "X axis" in header:
        conn.reflect = "x"
    elif "Y axis" in header:
        conn.reflect = "y"
    # The geometry is reported after rotation; undo it for the mode name
    if conn.enabled and conn.rotation.is_rotated:
        w, h = mode_size(conn.mode)
        conn.mode = f"{h}x{w}"


def parse_edids(text: str) -> dict[str, str]:
    """Extract the hex EDID block of each connector from ``xrandr --verbose``."""
    edids: dict[str, str] = {}
    name = ""
    in_edid = False
    for line in text.splitlines():
        header = _HEADER_RE.match(line)
        if header:
            name = header.group(1)
            in_edid = False
            continue
        stripped = line.strip()
        if stripped.startswith("EDID:"):
            in_edid = True
            continue
        if in_edid and name:
            if _HEX_RE.match(stripped):
                edids[name] = edids.get(name, "") + stripped
            else:
                in_edid = False
    return edids


# ── Tool ─────────────────────────────────────────────────────────────────

class XRandR:
    """Query and change the X display layout via xrandr."""

    def __init__(self, binary: str = "xrandr") -> None:
        self.binary = binary

    def _output(self, *args: str) -> str:
        return run_tool([self.binary, *args])

    def query(self) -> str:
        return self._output("-q")

    def query_verbose(self) -> str:
        return self._output("-q", "--verbose")

    def connectors(self) -> list[ConnectorState]:
        """Query all connectors (connected or not) as ConnectorState list."""
        return parse_query(self.query())

    def current_config(self) -> list[OutputConfig]:
        """Describe the live layout as directive records."""
        return [c.to_output_config() for c in self.connectors()]

    def edids(self) -> dict[str, str]:
        return parse_edids(self.query_verbose())

    def apply(self, args: list[str]) -> None:
        """Run one xrandr invocation with the given arguments."""
        log.info("xrandr %s", shlex.join(args))
        self._output(*args)
