"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .models import VIRTUAL_PROFILES
from .profile_manager import ProfileNotFound
from .switcher import Switcher
from .utils import APP_NAME, load_settings, run_lock
from .xrandr import DisplayToolError

log = logging.getLogger(__name__)


class _Parser(argparse.ArgumentParser):
    """Exit with status 1 on bad flags."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _epilog() -> str:
    lines = ["virtual profiles:"]
    lines += [f"  {name:<11} {desc}" for name, desc in VIRTUAL_PROFILES.items()]
    lines.append("")
    lines.append("Hooks: block, preswitch and postswitch executables in a profile")
    lines.append("directory (preswitch and postswitch also globally) are run with")
    lines.append("the profile name as argument. A block script exiting 0 skips the profile.")
    return "\n".join(lines)


def build_parser(prog: str) -> argparse.ArgumentParser:
    parser = _Parser(
        prog=prog,
        description="Automatically select a display configuration based on connected devices.",
        epilog=_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--change", action="store_true",
                        help="reload current setup")
    parser.add_argument("-s", "--save", metavar="PROFILE",
                        help="save your current setup to profile PROFILE")
    parser.add_argument("-l", "--load", metavar="PROFILE",
                        help="load profile PROFILE")
    parser.add_argument("-d", "--default", metavar="PROFILE",
                        help="make profile PROFILE the default profile")
    parser.add_argument("--force", action="store_true",
                        help="force (re)loading of a profile")
    parser.add_argument("--fingerprint", action="store_true",
                        help="fingerprint your current hardware setup")
    parser.add_argument("--config", action="store_true",
                        help="dump your current xrandr setup")
    parser.add_argument("--debug", action="store_true",
                        help="enable debug logging")
    return parser


def run(argv: list[str] | None = None, prog: str | None = None) -> int:
    prog = Path(prog or sys.argv[0] or APP_NAME).name
    args = build_parser(prog).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [autolayout] %(levelname)s %(message)s",
    )

    switcher = Switcher.from_settings(load_settings(prog))

    try:
        if args.fingerprint:
            print(switcher.fingerprint())
            return 0
        if args.config:
            print(switcher.current_config(), end="")
            return 0

        with run_lock(switcher.profiles.directory) as acquired:
            if not acquired:
                log.warning("Another run is in progress, skipping")
                return 1
            if args.save:
                switcher.save(args.save)
                return 0
            if args.load:
                return 0 if switcher.load(args.load) else 1
            return switcher.detect(change=args.change, force=args.force, default=args.default)
    except (ProfileNotFound, ValueError) as e:
        log.error("%s", e.args[0] if e.args else e)
        return 1
    except DisplayToolError as e:
        log.error("%s", e)
        return 1


def main() -> None:
    sys.exit(run())
