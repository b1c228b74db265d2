"""Command line entry point: restore one image file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from photorestore.config import INPAINTING_METHODS, OUTPUT_FORMATS, STRATEGIES, EngineConfig, get_preset, load_config_file, merge_config
from photorestore.config.settings import LOG_LEVEL_NAMES
from photorestore.errors import RestorationError
from photorestore.logger import configure_logging
from photorestore.pipeline import RestorationPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="photorestore", description="Restore a scanned or damaged photograph")
    parser.add_argument("input", type=Path, help="Image file to restore")
    parser.add_argument("-o", "--output", type=Path, help="Where to write the restored image")
    parser.add_argument("--preset", help="Named preset (archival, preview, aggressive, gentle)")
    parser.add_argument("--config", type=Path, help="JSON file with configuration overrides")
    parser.add_argument("--strategy", choices=STRATEGIES, help="Smart crop strategy")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, help="Output image format")
    parser.add_argument("--quality", type=int, help="Output quality (1-100)")
    parser.add_argument("--inpainting", choices=INPAINTING_METHODS, help="Inpainting method recorded for repairs")
    parser.add_argument("--blend-seams", action="store_true", help="Feather overlapping shard seams")
    parser.add_argument("--log-level", choices=LOG_LEVEL_NAMES, default="info", help="Log verbosity")
    return parser


def config_from_args(args: argparse.Namespace) -> EngineConfig:
    cfg = get_preset(args.preset) if args.preset else EngineConfig()
    if args.config:
        cfg = merge_config(cfg, load_config_file(str(args.config)))

    restoration = {}
    if args.format:
        restoration["output_format"] = args.format
    if args.quality is not None:
        restoration["output_quality"] = args.quality
    if args.inpainting:
        restoration["inpainting_method"] = args.inpainting
    if args.blend_seams:
        restoration["blend_seams"] = True
    overrides = {"pipeline": {"log_level": args.log_level}}
    if restoration:
        overrides["restoration"] = restoration
    if args.strategy:
        overrides["smart_crop"] = {"strategy": args.strategy}
    return merge_config(cfg, overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, stream_handler=True)

    try:
        cfg = config_from_args(args)
        pipeline = RestorationPipeline(cfg)
        result = pipeline.process(args.input)
    except (RestorationError, KeyError, OSError) as exc:
        print(f"photorestore: {exc}", file=sys.stderr)
        return 1

    output = args.output or args.input.with_name(f"{args.input.stem}_restored.{result.format}")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.blob)

    summary = {"output": str(output), "width": result.width, "height": result.height, **result.report.summary()}
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
