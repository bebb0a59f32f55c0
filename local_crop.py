"""Run the crop decision on a local image file.

This script reads an image from disk, optionally calls the vision service to
locate products and text, and writes the resized crop next to a JSON summary
of the decision. To invoke it, run::

    python local_crop.py --input photo.jpg --output out_dir --width 300 --height 300

Pass ``--asset left,top,width,height`` to skip detection entirely, or
``--no-detect`` to center on the full frame. The script does not interact
with Azure storage.
"""

import argparse
import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from focus_crop.config import CropSettings
from focus_crop.crop_types import AssetRegion, TargetDimensions
from focus_crop.image_io import image_dimensions, image_format, load_image
from focus_crop.pipeline import decide_crop, render_decision
from focus_crop.vision_client import VisionClient


def load_local_settings_if_needed(settings_path: Optional[Path] = None) -> None:
    """Copy values from local.settings.json into the environment when unset."""
    settings_path = settings_path or Path(__file__).with_name("local.settings.json")
    if not settings_path.exists():
        return

    settings = json.loads(settings_path.read_text(encoding="utf-8-sig"))
    values = settings.get("Values", {})
    for k, v in values.items():
        if isinstance(v, str) and k not in os.environ:
            os.environ[k] = v


def parse_asset(value: Optional[str]) -> Optional[AssetRegion]:
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("asset must be left,top,width,height")
    try:
        left, top, width, height = (int(part) for part in parts)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("asset values must be integers") from exc
    return AssetRegion(left=left, top=top, width=width, height=height)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Resize and crop an image locally")
    parser.add_argument("--input", required=True, help="Path to input image")
    parser.add_argument("--output", required=True, help="Directory to save outputs")
    parser.add_argument("--width", required=True, type=int, help="Target width")
    parser.add_argument("--height", required=True, type=int, help="Target height")
    parser.add_argument(
        "--asset", type=parse_asset, help="Region as left,top,width,height"
    )
    parser.add_argument(
        "--no-detect",
        action="store_true",
        help="Skip the vision service and center on the full frame",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    load_local_settings_if_needed()
    settings = CropSettings.from_env()

    input_path = Path(args.input)
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    data = input_path.read_bytes()

    img = load_image(data)
    dimensions = image_dimensions(img)
    fmt = image_format(img)

    objects = None
    vision = None
    if args.asset is None and not args.no_detect:
        vision = VisionClient.from_settings(settings)
        objects = vision.object_localization(data)

    decision = decide_crop(
        dimensions,
        TargetDimensions(width=args.width, height=args.height),
        objects=objects,
        fetch_texts=(lambda: vision.text_detection(data)) if vision else None,
        asset=args.asset,
        settings=settings,
    )
    encoded = render_decision(img, decision, fmt)

    out_path = output_dir / f"{input_path.stem}_{encoded.width}x{encoded.height}.{fmt}"
    out_path.write_bytes(encoded.data)
    summary = {
        "region": decision.region.as_dict(),
        "region_source": decision.resolution.source,
        "text_vetoed": decision.text_vetoed,
        "text_classifications": decision.text_classifications,
        "scale": decision.fill.scale,
        "resized": [decision.fill.resized.width, decision.fill.resized.height],
        "crop": [
            decision.fill.crop.left,
            decision.fill.crop.top,
            decision.fill.crop.width,
            decision.fill.crop.height,
        ],
    }
    summary_path = out_path.with_suffix(".json")
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(f"Saved {out_path}")
    print(f"Saved {summary_path}")


if __name__ == "__main__":
    main()
