"""Tests for the fingerprint strategies."""

import hashlib
import random

from autolayout.fingerprint import FingerprintEngine
from autolayout.utils import FingerprintMethod
from autolayout.xrandr import DisplayToolMissing

from conftest import DOCKED_DEVICES, DOCKED_QUERY, DOCKED_VERBOSE, FakeDevice, FakeXRandR


class FakeDisper:
    def __init__(self, lines):
        self.lines = lines

    def list_displays(self):
        return list(self.lines)


def _engine(methods, devices=(), xrandr=None, disper=None):
    return FingerprintEngine(
        methods, xrandr or FakeXRandR(DOCKED_QUERY, DOCKED_VERBOSE),
        disper=disper, drm_connectors=lambda: list(devices),
    )


class TestSysfsEdid:
    def test_connected_only(self):
        devices = [
            FakeDevice("card0-eDP-1", edid=b"panel"),
            FakeDevice("card0-DP-1", status="disconnected", edid=b"stale"),
        ]
        fp = _engine([FingerprintMethod.SYSFS_EDID], devices).fingerprint()
        assert fp == "card0-eDP-1 " + hashlib.md5(b"panel").hexdigest()

    def test_sorted_by_connector(self):
        fp = _engine([FingerprintMethod.SYSFS_EDID], DOCKED_DEVICES).fingerprint()
        names = [line.split()[0] for line in fp.splitlines()]
        assert names == ["card0-HDMI-A-1", "card0-eDP-1"]

    def test_deterministic_across_enumeration_order(self):
        devices = [FakeDevice(f"card0-DP-{i}", edid=bytes([i])) for i in range(6)]
        first = _engine([FingerprintMethod.SYSFS_EDID], devices).fingerprint()
        shuffled = list(devices)
        random.Random(4).shuffle(shuffled)
        assert _engine([FingerprintMethod.SYSFS_EDID], shuffled).fingerprint() == first
        assert _engine([FingerprintMethod.SYSFS_EDID], devices).fingerprint() == first

    def test_triggers_xrandr_query(self):
        class CountingXRandR(FakeXRandR):
            queries = 0

            def query(self):
                CountingXRandR.queries += 1
                return super().query()

        xrandr = CountingXRandR(DOCKED_QUERY)
        _engine([FingerprintMethod.SYSFS_EDID], DOCKED_DEVICES, xrandr=xrandr).fingerprint()
        assert CountingXRandR.queries == 1


def test_xrandr_edid():
    fp = _engine([FingerprintMethod.XRANDR_EDID]).fingerprint()
    assert fp.splitlines() == [
        "HDMI-1 00ffffffffffff004c2d4e0500000000",
        "eDP-1 00ffffffffffff000daec91400000000081a0104a51f1178028d15a156529d28",
    ]


def test_disper_listing_sorted():
    disper = FakeDisper(["display DFP-1: Dell", "display CRT-0: Acer"])
    fp = _engine([FingerprintMethod.DISPER], disper=disper).fingerprint()
    assert fp == "display CRT-0: Acer\ndisplay DFP-1: Dell"


def test_first_non_empty_method_wins():
    methods = [FingerprintMethod.SYSFS_EDID, FingerprintMethod.XRANDR_EDID]
    fp = _engine(methods, devices=[]).fingerprint()
    assert fp.startswith("HDMI-1 ")


def test_failing_method_falls_through():
    def unreadable():
        raise OSError("no udev")

    engine = FingerprintEngine(
        [FingerprintMethod.SYSFS_EDID, FingerprintMethod.XRANDR_EDID],
        FakeXRandR(DOCKED_QUERY, DOCKED_VERBOSE), drm_connectors=unreadable,
    )
    assert engine.fingerprint().startswith("HDMI-1 ")


def test_sysfs_survives_failed_refresh_query():
    class BrokenXRandR(FakeXRandR):
        def query(self):
            raise DisplayToolMissing("no xrandr")

    xrandr = BrokenXRandR(DOCKED_QUERY, DOCKED_VERBOSE)
    fp = _engine([FingerprintMethod.SYSFS_EDID], DOCKED_DEVICES, xrandr=xrandr).fingerprint()
    assert fp.splitlines()[0].startswith("card0-HDMI-A-1 ")


def test_all_empty_returns_empty(caplog):
    xrandr = FakeXRandR(DOCKED_QUERY, verbose="")
    fp = _engine([FingerprintMethod.SYSFS_EDID, FingerprintMethod.XRANDR_EDID], xrandr=xrandr).fingerprint()
    assert fp == ""
    assert "Unable to fingerprint" in caplog.text


class TestEdidBytes:
    DELL = bytes.fromhex("00ffffffffffff0010ac40a04c4c4c4c") + b"DELL U2415"
    LG = bytes.fromhex("00ffffffffffff001e6d7f5b01010101") + b"LG ULTRAWIDE"

    def test_different_monitors_on_same_connector(self, tmp_path):
        dell = FakeDevice("card0-DP-1", edid=self.DELL, root=tmp_path / "dell")
        lg = FakeDevice("card0-DP-1", edid=self.LG, root=tmp_path / "lg")
        a = _engine([FingerprintMethod.SYSFS_EDID], [dell]).fingerprint()
        b = _engine([FingerprintMethod.SYSFS_EDID], [lg]).fingerprint()
        assert a != b
        assert a == "card0-DP-1 " + hashlib.md5(self.DELL).hexdigest()

    def test_edid_read_from_sysfs_file(self, tmp_path):
        dev = FakeDevice("card0-DP-1", edid=self.DELL, root=tmp_path)
        assert (tmp_path / "card0-DP-1" / "edid").read_bytes()[:1] == b"\x00"
        assert dev.attributes["edid"] == b""
        fp = _engine([FingerprintMethod.SYSFS_EDID], [dev]).fingerprint()
        assert not fp.endswith(hashlib.md5(b"").hexdigest())

    def test_missing_edid_file_hashes_empty(self, tmp_path):
        dev = FakeDevice("card0-DP-1", edid=b"x", root=tmp_path)
        (tmp_path / "card0-DP-1" / "edid").unlink()
        fp = _engine([FingerprintMethod.SYSFS_EDID], [dev]).fingerprint()
        assert fp == "card0-DP-1 " + hashlib.md5(b"").hexdigest()
