"""Command-line interface for MediaCat.

Usage:
    mediacat scan   [options] DIRECTORY   Sort every entry of DIRECTORY once
    mediacat watch  [options] DIRECTORY   Scan, then sort new entries as they arrive
    mediacat single [options] DIRECTORY   Sort DIRECTORY itself

Run ``mediacat --help`` for the list of options.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import shutil
import signal
import sys
from pathlib import Path

from mediacat import __app_name__, __version__
from mediacat.config import Config, ConfigError
from mediacat.driver import MediaCat
from mediacat.watcher import WatchUnavailableError

logger = logging.getLogger(__name__)

COMMANDS = ("watch", "scan", "single")
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mediacat",
        description=f"{__app_name__} – sort media folders into a library",
    )
    parser.add_argument("command", choices=COMMANDS, help="What to do")
    parser.add_argument("directory", help="Folder to scan, watch or sort")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable trace logging"
    )
    parser.add_argument(
        "-d",
        "--dry",
        action="store_true",
        default=None,
        help="Log planned operations without changing anything",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=int,
        metavar="N",
        help="Folders with more than N videos are shows (default: 3)",
    )
    parser.add_argument(
        "-m", "--mv", metavar="DIR", help="Media root to move sorted entries into"
    )
    parser.add_argument("--chmod", metavar="MODE", help="Octal mode applied after moving")
    parser.add_argument(
        "--chown", metavar="OWNER:GROUP", help="Ownership applied after moving"
    )
    parser.add_argument(
        "-c", "--config", metavar="FILE", help="JSON file with default settings"
    )
    parser.add_argument(
        "-x",
        "--exclude",
        action="append",
        metavar="PATTERN",
        help="Skip top-level entries matching this glob (repeatable)",
    )
    parser.add_argument(
        "--settle",
        type=int,
        metavar="SECONDS",
        help="watch: wait until a new entry stops changing for SECONDS",
    )
    parser.add_argument("--log-file", metavar="FILE", help="Also log to this file")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configure the stderr handler and the optional rotating file log."""
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter(_LOG_FORMAT)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)

    if config.log_file:
        fh = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_log_size_mb * 1024 * 1024,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root_logger.addHandler(fh)


def _load_config(args: argparse.Namespace) -> Config:
    return Config.load(
        Path(args.config) if args.config else None,
        media_root=args.mv,
        threshold=args.threshold,
        dry_run=args.dry,
        chmod=args.chmod,
        chown=args.chown,
        exclude_patterns=args.exclude,
        settle_seconds=args.settle,
        log_file=args.log_file,
    )


def _fail(message: str) -> int:
    print(f"mediacat: error: {message}", file=sys.stderr)
    return 1


def _install_stop_handlers(app: MediaCat) -> None:
    def _handler(sig, frame):
        logger.info("Received signal %d, stopping.", sig)
        app.stop()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def main(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = _load_config(args)
    except ConfigError as exc:
        return _fail(str(exc))

    setup_logging(config, verbose=args.verbose)
    logger.debug("%s %s starting with %s", __app_name__, __version__, config.as_dict())

    target = Path(args.directory).expanduser()
    if args.command == "single":
        if not target.exists():
            return _fail(f"No such file or directory: {target}")
    elif not target.is_dir():
        return _fail(f"Not a directory: {target}")

    if not config.can_relocate():
        logger.info("No media root given; classifying only.")

    app = MediaCat(config)
    try:
        if args.command == "single":
            app.single(target)
        elif args.command == "scan":
            app.scan(target)
        else:
            _install_stop_handlers(app)
            app.watch(target)
    except WatchUnavailableError as exc:
        return _fail(str(exc))
    except (OSError, shutil.Error) as exc:
        return _fail(str(exc))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
