"""CLI interface for psmeter."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time

from . import __version__
from .config import load_config
from .errors import ConfigurationError


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run the agent until interrupted."""
    cfg = load_config(args.config)

    from .agent import Agent

    agent = Agent(cfg)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    agent.start()
    print(f"psmeter running (mode={cfg.mode}, interval={cfg.sampler.interval_seconds}s)")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        agent.shutdown()
    print("\nCollection stopped.")


def _cmd_sample(args: argparse.Namespace) -> None:
    """Take one sample and print it as JSON lines."""
    cfg = load_config(args.config)

    from .agent import Agent

    agent = Agent(cfg, exporters=[])
    if agent.memory_sampler is None:
        sys.exit(1)
    harvest = agent.collect_once()
    for s in harvest.samples:
        print(json.dumps(s.to_dict()))
    if agent.memory_sampler.disabled:
        sys.exit(1)


def _cmd_platform(_args: argparse.Namespace) -> None:
    """Print the detected platform family and the command it maps to."""
    from .sampler.platform import detect_platform, resolve_template

    profile = detect_platform()
    print(f"platform: {profile.family}")
    try:
        template = resolve_template(profile)
    except ConfigurationError as exc:
        print(f"command:  (none) {exc}")
        sys.exit(1)
    print(f"command:  {template.command}")


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"psmeter {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the psmeter CLI."""
    parser = argparse.ArgumentParser(
        prog="psmeter",
        description="Sample process memory and SQL timings",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to psmeter.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    collect_p = sub.add_parser("collect", help="Start periodic sampling")
    collect_p.set_defaults(func=_cmd_collect)

    sample_p = sub.add_parser("sample", help="Take one sample and print it")
    sample_p.set_defaults(func=_cmd_sample)

    platform_p = sub.add_parser("platform", help="Show the detected platform and ps command")
    platform_p.set_defaults(func=_cmd_platform)

    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
