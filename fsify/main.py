from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

from . import __version__
from .config import ConvertOptions, load_config
from .convert import convert_image
from .lib.prereqs import INSTALL_SUGGESTIONS, MissingPrerequisitesError, check_prerequisites
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)


_COLORS = {"red": "\033[31m", "green": "\033[32m", "yellow": "\033[33m", "blue": "\033[34m"}
_RESET = "\033[0m"


def colorize(text: str, color: str, no_color: bool) -> str:
    code = _COLORS.get(color)
    if no_color or code is None:
        return text
    return f"{code}{text}{_RESET}"


def _is_terminal() -> bool:
    return any(s.isatty() for s in (sys.stdout, sys.stderr, sys.stdin))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fsify",
        description="Convert container images to bootable filesystem images",
    )
    p.add_argument("image", nargs="?", help="Container image reference (e.g. nginx:latest)")
    p.add_argument("--version", action="store_true", help="Show version information")
    p.add_argument("-o", "--output", default=None, help="Output file path (default: <image-name>.img)")
    p.add_argument("-fs", "--filesystem", default=None, help="Filesystem type (ext4, xfs, btrfs) (default: ext4)")
    p.add_argument("-s", "--size-buffer", type=int, default=None, help="Extra space in MiB to add to the image (default: 50)")
    p.add_argument("--preallocate", action="store_true", help="Preallocate disk space instead of sparse allocation")
    p.add_argument("--dual-output", action="store_true", help="Also generate a squashfs image")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every command and its output")
    p.add_argument("-q", "--quiet", action="store_true", help="Only print the final image path")
    p.add_argument("--no-color", action="store_true", help="Disable colored output")
    p.add_argument("--config", default=None, help="YAML file with default options")
    p.add_argument("--log", default=None, help="Also write the log to this file")
    return p


def options_from_args(args: argparse.Namespace) -> ConvertOptions:
    """Defaults, then the --config file, then explicit flags."""

    opts = ConvertOptions()
    if args.config:
        opts = load_config(args.config).apply(opts)

    if args.filesystem:
        opts = replace(opts, fs_type=args.filesystem)
    if args.size_buffer is not None:
        if args.size_buffer < 0:
            raise ValueError("--size-buffer must be non-negative")
        opts = replace(opts, buffer_mib=args.size_buffer, buffer_explicit=True)
    if args.output:
        opts = replace(opts, output=args.output)
    if args.preallocate:
        opts = replace(opts, preallocate=True)
    if args.dual_output:
        opts = replace(opts, dual_output=True)

    quiet = bool(args.quiet)
    no_color = bool(args.no_color)
    if not _is_terminal():
        quiet = True
        no_color = True
    return replace(opts, verbose=bool(args.verbose), quiet=quiet, no_color=no_color)


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    if args.version:
        print(f"fsify version {__version__}")
        return 0

    if not args.image:
        p.print_usage(sys.stderr)
        print("Error: Missing Docker image reference", file=sys.stderr)
        return 1

    try:
        opts = options_from_args(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(
        log_path=args.log,
        level=logging.DEBUG if opts.verbose else logging.INFO,
        console_level=logging.WARNING if opts.quiet else None,
    )

    if os.geteuid() != 0:
        print(colorize("Error: fsify requires root privileges for mount operations.", "red", opts.no_color), file=sys.stderr)
        print("Please run with sudo.", file=sys.stderr)
        return 1

    try:
        check_prerequisites(opts.fs_type, preallocate=opts.preallocate, dual_output=opts.dual_output)
    except MissingPrerequisitesError as e:
        print(colorize(f"Error: Missing prerequisites - {e}", "red", opts.no_color), file=sys.stderr)
        print(INSTALL_SUGGESTIONS, file=sys.stderr)
        return 1

    if not opts.quiet:
        fmt = opts.fs_type + ("+squashfs" if opts.dual_output else "")
        print(colorize(f"Converting image '{args.image}' to {fmt} filesystem...", "blue", opts.no_color))

    try:
        result = convert_image(args.image, opts)
    except KeyboardInterrupt:
        return 130
    except (RuntimeError, OSError, ValueError) as e:
        logger.debug("Conversion failed", exc_info=True)
        print(colorize(f"Fatal Error: {e}", "red", opts.no_color), file=sys.stderr)
        return 1

    if opts.quiet:
        print(result.image_path)
    else:
        print(colorize(f"Successfully created image: {result.image_path}", "green", opts.no_color))
        if result.squashfs_path:
            print(colorize(f"Created squashfs image: {result.squashfs_path}", "green", opts.no_color))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
