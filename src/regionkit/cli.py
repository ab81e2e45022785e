"""
Command-line interface for composite-back jobs.

Usage:
    regionkit composite path/to/job.yaml [--output result.png] [--edge-blend 3] [--expansion 0]
    regionkit crop IMAGE --box X Y W H --output crop.png
    regionkit validate path/to/job.yaml [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .config import CompositeJobConfig, load_job_config
from .core.compositor import CompositeOptions, composite, crop_image
from .core.geometry import BoundingBox
from .core.image import SourceImage
from .core.mask import MaskBuffer

Logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")


def add_shared_job_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "job",
        type=Path,
        help="Path to the YAML job file naming the original, region, mask and box.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regionkit",
        description="Crop regions for local regeneration and composite the results back.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # composite command
    composite_parser = subparsers.add_parser(
        "composite",
        help="Blend a regenerated region back into its original image.",
    )
    add_shared_job_argument(composite_parser)
    composite_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Override the output path defined in the job file.",
    )
    composite_parser.add_argument(
        "--edge-blend",
        type=float,
        default=None,
        help="Override the seam feather width in pixels.",
    )
    composite_parser.add_argument(
        "--expansion",
        type=float,
        default=None,
        help="Override the mask dilation in pixels.",
    )

    # crop command
    crop_parser = subparsers.add_parser(
        "crop",
        help="Cut a bounding box out of an image (the input sent to the generator).",
    )
    crop_parser.add_argument("image", type=Path, help="Image to crop.")
    crop_parser.add_argument(
        "--box",
        type=float,
        nargs=4,
        metavar=("X", "Y", "WIDTH", "HEIGHT"),
        required=True,
        help="Bounding box in image pixels.",
    )
    crop_parser.add_argument("--output", type=Path, required=True, help="Where to write the crop.")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a job file and its images without writing anything.",
    )
    add_shared_job_argument(validate_parser)

    return parser


def summarize_job(job_path: Path, config: CompositeJobConfig) -> str:
    box = config.box
    return "\n".join(
        [
            f"Job: {job_path}",
            f"  Original: {config.original}",
            f"  Region:   {config.region}",
            f"  Mask:     {config.mask}",
            f"  Box: x={box.x} y={box.y} {box.width}x{box.height}",
            f"  Options: expansion={config.options.expansion} edge_blend={config.options.edge_blend}",
            f"  Output: {config.output}",
        ]
    )


def _load_job(args: argparse.Namespace) -> Optional[CompositeJobConfig]:
    job_path: Path = args.job
    if not job_path.exists():
        Logger.error("Job file not found: %s", job_path)
        return None
    return load_job_config(job_path)


def _run_job(config: CompositeJobConfig, options: CompositeOptions) -> SourceImage:
    original = SourceImage.from_path(config.original)
    region = SourceImage.from_path(config.region)
    mask = MaskBuffer.from_image(SourceImage.from_path(config.mask))
    return composite(original, region, config.box.to_box(), mask, options)


def composite_command(args: argparse.Namespace) -> int:
    try:
        config = _load_job(args)
        if config is None:
            return 2
        overrides = {}
        if args.edge_blend is not None:
            overrides["edge_blend"] = args.edge_blend
        if args.expansion is not None:
            overrides["expansion"] = args.expansion
        options = CompositeOptions(**{**config.options.model_dump(), **overrides})
        result = _run_job(config, options)
        output = args.output or config.output
        result.save(output)
        Logger.info("Composite written to: %s", output)
        return 0
    except Exception as exc:  # pylint: disable=broad-except
        Logger.error("Composite failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def crop_command(args: argparse.Namespace) -> int:
    try:
        image = SourceImage.from_path(args.image)
        cropped = crop_image(image, BoundingBox(*args.box))
        cropped.save(args.output)
        Logger.info("Crop (%dx%d) written to: %s", cropped.width, cropped.height, args.output)
        return 0
    except Exception as exc:  # pylint: disable=broad-except
        Logger.error("Crop failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def validate_command(args: argparse.Namespace) -> int:
    try:
        config = _load_job(args)
        if config is None:
            return 2
        print(summarize_job(args.job, config))
        original = SourceImage.from_path(config.original)
        region = SourceImage.from_path(config.region)
        mask = SourceImage.from_path(config.mask)
        box = config.box.to_box().rounded()
        if not box.fits_within(original.width, original.height):
            Logger.error("Box %s does not fit the %dx%d original", box.to_dict(), original.width, original.height)
            return 1
        if region.size != (int(box.width), int(box.height)):
            Logger.warning(
                "Region is %dx%d but the box is %dx%d; composite will fail",
                region.width,
                region.height,
                int(box.width),
                int(box.height),
            )
            return 1
        if mask.size != original.size:
            Logger.error("Mask is %dx%d but the original is %dx%d", *mask.size, *original.size)
            return 1
        Logger.info("Validation succeeded.")
        return 0
    except ValidationError as exc:
        Logger.error("Invalid job file: %s", exc)
        return 1
    except Exception as exc:  # pylint: disable=broad-except
        Logger.error("Validation failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "composite":
        return composite_command(args)
    if args.command == "crop":
        return crop_command(args)
    if args.command == "validate":
        return validate_command(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
