"""Command-line interface for the CRT filter.

Stdout carries raw frame data for the ``run`` command, so every message is
written to stderr.
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import BinaryIO

import cv2

from crtfilter.config import FilterConfig
from crtfilter.frames import frame_from_bgr, frame_to_bgr
from crtfilter.pipeline import CrtFilter, run_stream

SIZE_PATTERN = re.compile(r"^(\d+)[xX](\d+)$")


def _configure_logging(verbose: bool) -> None:
    """Configure root logging on stderr."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _load_config(config_path: Path | None) -> FilterConfig:
    """Load a config file, or return defaults when no path is given.

    Exits with status 1 if the file is missing or invalid.
    """
    if config_path is None:
        return FilterConfig()

    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)

    try:
        return FilterConfig.from_yaml(config_path)
    except Exception as e:
        print(f"Error: Failed to load config: {e}", file=sys.stderr)
        sys.exit(1)


def parse_size(text: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` string.

    Raises:
        argparse.ArgumentTypeError: If the text is not of that form.
    """
    match = SIZE_PATTERN.match(text)
    if match is None:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}")
    return int(match.group(1)), int(match.group(2))


def init_config(config_path: Path) -> FilterConfig:
    """Write a configuration file populated with the default values.

    Args:
        config_path: Path where the config YAML will be saved.

    Returns:
        The default FilterConfig.
    """
    config = FilterConfig()
    config.to_yaml(config_path)
    print(f"[OK] Configuration saved to: {config_path}", file=sys.stderr)
    return config


def run_command(
    input_width: int,
    input_height: int,
    output_width: int,
    output_height: int,
    scanlines: int,
    config_path: Path | None = None,
    verbose: bool = False,
    device: str | None = None,
    no_cache: bool = False,
    input_stream: BinaryIO | None = None,
    output_stream: BinaryIO | None = None,
) -> int:
    """Filter a raw frame stream from stdin to stdout.

    Args:
        input_width: Width of incoming frames.
        input_height: Height of incoming frames.
        output_width: Width of produced frames.
        output_height: Height of produced frames.
        scanlines: Number of simulated scanlines.
        config_path: Optional config YAML for geometry and tone settings.
        verbose: If True, set logging to DEBUG level.
        device: Optional device override (replaces config.runtime.device).
        no_cache: Disable the recent-frame cache.
        input_stream: Input stream (defaults to stdin).
        output_stream: Output stream (defaults to stdout).

    Returns:
        Number of frames written.
    """
    # 1. Configure logging
    _configure_logging(verbose)

    # 2. Load config and apply dimensions
    config = _load_config(config_path)
    try:
        config = config.with_stream(
            input_width=input_width,
            input_height=input_height,
            output_width=output_width,
            output_height=output_height,
            scanlines=scanlines,
        )
    except ValueError as e:
        print(f"Error: Invalid parameters: {e}", file=sys.stderr)
        sys.exit(1)

    # 3. Apply CLI overrides
    if device is not None:
        config.runtime.device = device
    if no_cache:
        config.runtime.cache_size = 0

    # 4. Run
    return run_stream(
        config,
        input_stream if input_stream is not None else sys.stdin.buffer,
        output_stream if output_stream is not None else sys.stdout.buffer,
    )


def image_command(
    input_path: Path,
    output_path: Path,
    size: tuple[int, int],
    scanlines: int | None = None,
    config_path: Path | None = None,
    verbose: bool = False,
) -> None:
    """Filter a single image file.

    Args:
        input_path: Image readable by OpenCV.
        output_path: Destination image path (format from the suffix).
        size: Output (width, height).
        scanlines: Scanline count (defaults to the image height).
        config_path: Optional config YAML.
        verbose: If True, set logging to DEBUG level.
    """
    _configure_logging(verbose)

    if not input_path.exists():
        print(f"Error: Input image does not exist: {input_path}", file=sys.stderr)
        sys.exit(1)

    image = cv2.imread(str(input_path), cv2.IMREAD_COLOR)
    if image is None:
        print(f"Error: Failed to read image: {input_path}", file=sys.stderr)
        sys.exit(1)

    height, width = image.shape[:2]
    config = _load_config(config_path)
    try:
        config = config.with_stream(
            input_width=width,
            input_height=height,
            output_width=size[0],
            output_height=size[1],
            scanlines=scanlines if scanlines is not None else height,
        )
    except ValueError as e:
        print(f"Error: Invalid parameters: {e}", file=sys.stderr)
        sys.exit(1)

    output = CrtFilter(config).convert(frame_from_bgr(image))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(output_path), frame_to_bgr(output)):
        print(f"Error: Failed to write image: {output_path}", file=sys.stderr)
        sys.exit(1)
    print(f"[OK] Wrote {size[0]}x{size[1]} image to: {output_path}", file=sys.stderr)


def main() -> None:
    """Main entry point for the crtfilter CLI."""
    parser = argparse.ArgumentParser(
        prog="crtfilter",
        description="Simulate a CRT display on raw RGB frame streams.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Write a default config file",
    )
    init_parser.add_argument(
        "--config",
        type=Path,
        default=Path("crtfilter.yaml"),
        help="Path to output config YAML file (default: crtfilter.yaml)",
    )

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Filter raw 32-bit frames from stdin to stdout",
    )
    for name in ("in_width", "in_height", "out_width", "out_height", "scanlines"):
        run_parser.add_argument(name, type=int)
    run_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML file (geometry and tone settings)",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    run_parser.add_argument(
        "--device",
        type=str,
        choices=["cpu", "cuda"],
        default=None,
        help="Override device",
    )
    run_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable the recent-frame cache",
    )

    # image subcommand
    image_parser = subparsers.add_parser(
        "image",
        help="Filter a single image file",
    )
    image_parser.add_argument("input", type=Path, help="Input image")
    image_parser.add_argument("output", type=Path, help="Output image")
    image_parser.add_argument(
        "--size",
        type=parse_size,
        required=True,
        help="Output size as WIDTHxHEIGHT",
    )
    image_parser.add_argument(
        "--scanlines",
        type=int,
        default=None,
        help="Number of scanlines (default: input height)",
    )
    image_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML file",
    )
    image_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Dispatch
    if args.command == "init":
        init_config(config_path=args.config)
    elif args.command == "run":
        run_command(
            input_width=args.in_width,
            input_height=args.in_height,
            output_width=args.out_width,
            output_height=args.out_height,
            scanlines=args.scanlines,
            config_path=args.config,
            verbose=args.verbose,
            device=args.device,
            no_cache=args.no_cache,
        )
    elif args.command == "image":
        image_command(
            input_path=args.input,
            output_path=args.output,
            size=args.size,
            scanlines=args.scanlines,
            config_path=args.config,
            verbose=args.verbose,
        )
    else:
        parser.print_help(sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
