"""
Command line entry point: check, watch, version.
"""

import argparse
import json
import logging
import queue
import sys

import structlog
from pydantic import BaseModel

from hotconf import __version__
from hotconf.errors import ConfigError
from hotconf.loader import ConfigLoader
from hotconf.settings import get_settings


def _configure_logging(level: str) -> None:
    """Filter structlog output by level; logs go to stderr so stdout carries only documents."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _render(loader: ConfigLoader, value, as_json: bool) -> str:
    if as_json:
        doc = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        return json.dumps({"fingerprint": loader.fingerprint, "config": doc}, ensure_ascii=False, sort_keys=True)
    text = loader.codec.encode(value).decode("utf-8")
    return f"# fingerprint: {loader.fingerprint}\n{text}"


def cmd_check(args: argparse.Namespace) -> int:
    """Load the file once (required) and print the accepted document."""
    loader = ConfigLoader(settings=get_settings(), start_watcher=False)
    try:
        loader.set_config_path(args.path, required=True)
    except ConfigError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    finally:
        loader.close()
    print(_render(loader, loader.config(), args.json))
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """Print every accepted version of the file until interrupted (or --max-updates reached)."""
    overrides = {}
    if args.poll_interval is not None:
        overrides["poll_interval_seconds"] = args.poll_interval
    if args.no_notify:
        overrides["use_notifications"] = False
    settings = get_settings().model_copy(update=overrides)
    loader = ConfigLoader(args.path, required=args.required, settings=settings)
    if loader.last_error is not None:
        print(f"Warning: {loader.last_error}", file=sys.stderr)
    sub = loader.subscribe()
    seen = 0
    try:
        while args.max_updates is None or seen < args.max_updates:
            try:
                value = sub.get(timeout=1.0)
            except queue.Empty:
                continue
            print(_render(loader, value, args.json), flush=True)
            seen += 1
    except KeyboardInterrupt:
        pass
    finally:
        loader.close()
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    """Print version."""
    print(__version__)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="hotconf",
        description="Hot-reloading config loader: check a file, watch it for changes, version.",
    )
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"], help="Log level (default: warning)")
    sub = parser.add_subparsers(dest="command", required=True)

    # check
    p_check = sub.add_parser("check", help="Load a config file once and print it")
    p_check.add_argument("path", help="Config file (YAML, or JSON by .json suffix)")
    p_check.add_argument("--json", action="store_true", help="Print {fingerprint, config} as JSON")
    p_check.set_defaults(func=cmd_check)

    # watch
    p_watch = sub.add_parser("watch", help="Print the config each time it changes")
    p_watch.add_argument("path", help="Config file to watch")
    p_watch.add_argument("--required", action="store_true", help="Fail instead of falling back to a default when unreadable")
    p_watch.add_argument("--poll-interval", type=float, default=None, help="Timer fallback in seconds (default: from settings)")
    p_watch.add_argument("--no-notify", action="store_true", help="Poll only; do not use file system notifications")
    p_watch.add_argument("--max-updates", type=int, default=None, help="Exit after printing this many versions")
    p_watch.add_argument("--json", action="store_true", help="Print {fingerprint, config} as JSON")
    p_watch.set_defaults(func=cmd_watch)

    # version
    p_version = sub.add_parser("version", help="Print version")
    p_version.set_defaults(func=cmd_version)

    args = parser.parse_args()
    _configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
