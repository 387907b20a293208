"""
Pytest configuration and fixtures for autolayout tests.

Display tools are replaced by fakes that serve canned xrandr reports and
record every apply invocation.
"""

import stat
import tempfile
from pathlib import Path

import pytest

from autolayout.applier import ConfigApplier
from autolayout.fingerprint import FingerprintEngine
from autolayout.hooks import HookRunner
from autolayout.profile_manager import ProfileManager
from autolayout.switcher import Switcher, XRandRBackend
from autolayout.utils import FingerprintMethod
from autolayout.xrandr import XRandR


LAPTOP_QUERY = """\
Screen 0: minimum 8 x 8, current 1920 x 1080, maximum 32767 x 32767
eDP-1 connected primary 1920x1080+0+0 (normal left inverted right x axis y axis) 309mm x 174mm
   1920x1080     60.02*+  59.93
   1280x720      60.00
HDMI-1 disconnected (normal left inverted right x axis y axis)
"""

DOCKED_QUERY = """\
Screen 0: minimum 8 x 8, current 3200 x 1080, maximum 32767 x 32767
eDP-1 connected primary 1920x1080+0+0 (normal left inverted right x axis y axis) 309mm x 174mm
   1920x1080     60.02*+  59.93
   1280x720      60.00
HDMI-1 connected 1280x1024+1920+0 (normal left inverted right x axis y axis) 376mm x 301mm
   1280x1024     60.02*+  75.02
   1280x720      60.00
DP-1 disconnected (normal left inverted right x axis y axis)
"""

DOCKED_VERBOSE = """\
Screen 0: minimum 8 x 8, current 3200 x 1080, maximum 32767 x 32767
eDP-1 connected primary 1920x1080+0+0 (0x46) normal (normal left inverted right x axis y axis) 309mm x 174mm
\tIdentifier: 0x42
\tEDID:
\t\t00ffffffffffff000daec91400000000
\t\t081a0104a51f1178028d15a156529d28
\tBorderDimensions: 4
  1920x1080 (0x46) 138.700MHz +HSync -VSync *current +preferred
HDMI-1 connected 1280x1024+1920+0 (0x50) normal (normal left inverted right x axis y axis) 376mm x 301mm
\tEDID:
\t\t00ffffffffffff004c2d4e0500000000
\tBorderDimensions: 4
  1280x1024 (0x50) 108.000MHz +HSync +VSync *current +preferred
DP-1 disconnected (normal left inverted right x axis y axis)
"""


class FakeXRandR(XRandR):
    """XRandR serving canned reports and recording apply calls."""

    def __init__(self, query=LAPTOP_QUERY, verbose=""):
        super().__init__("xrandr")
        self.query_text = query
        self.verbose_text = verbose
        self.applied = []

    def _output(self, *args):
        if args[:1] == ("-q",):
            return self.verbose_text if "--verbose" in args else self.query_text
        self.applied.append(list(args))
        return ""


class FakeDevice:
    """Stands in for a pyudev DRM connector device backed by a sysfs-like directory.

    Like libudev, ``attributes`` returns values cut at the first NUL byte;
    the full EDID is only available from the ``edid`` file.
    """

    def __init__(self, sys_name, status="connected", edid=b"", root=None):
        root = Path(root or tempfile.mkdtemp(prefix="drm-"))
        self.sys_name = sys_name
        self.sys_path = str(root / sys_name)
        Path(self.sys_path).mkdir(parents=True, exist_ok=True)
        (Path(self.sys_path) / "status").write_text(f"{status}\n")
        (Path(self.sys_path) / "edid").write_bytes(edid)
        self.attributes = {
            "status": f"{status}\n".encode(),
            "edid": edid.split(b"\x00", 1)[0],
        }


LAPTOP_DEVICES = [
    FakeDevice("card0-eDP-1", edid=b"\x00\xff\xff laptop panel"),
    FakeDevice("card0-HDMI-A-1", status="disconnected"),
]

DOCKED_DEVICES = LAPTOP_DEVICES[:1] + [
    FakeDevice("card0-HDMI-A-1", edid=b"\x00\xff\xff external monitor"),
]


class Hardware:
    """Mutable hardware state shared by the fakes of one test."""

    def __init__(self):
        self.devices = list(LAPTOP_DEVICES)
        self.xrandr = FakeXRandR()

    def dock(self):
        self.devices = list(DOCKED_DEVICES)
        self.xrandr.query_text = DOCKED_QUERY

    def undock(self):
        self.devices = list(LAPTOP_DEVICES)
        self.xrandr.query_text = LAPTOP_QUERY


@pytest.fixture
def profiles_dir(tmp_path) -> Path:
    d = tmp_path / "profiles"
    d.mkdir()
    return d


@pytest.fixture
def hardware():
    return Hardware()


@pytest.fixture
def switcher(profiles_dir, hardware) -> Switcher:
    xrandr = hardware.xrandr
    applier = ConfigApplier(xrandr)
    profiles = ProfileManager(profiles_dir)
    return Switcher(
        profiles=profiles,
        fingerprinter=FingerprintEngine(
            [FingerprintMethod.SYSFS_EDID], xrandr,
            drm_connectors=lambda: hardware.devices,
        ),
        hooks=HookRunner(profiles),
        backend=XRandRBackend(xrandr, applier),
        xrandr=xrandr,
        applier=applier,
    )


@pytest.fixture
def make_script(tmp_path):
    """Create an executable shell script; returns its path."""
    def _make(path: Path, body: str, executable: bool = True) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path
    return _make
