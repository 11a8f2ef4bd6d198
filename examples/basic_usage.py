#!/usr/bin/env python3
"""Basic usage example for Chromapick."""

import sys
from pathlib import Path

import numpy as np
from PIL import Image

from chromapick import ImageDecodeError, PaletteExtractor
from chromapick.utils.color import format_percentage
from chromapick.utils.config import ExtractionConfig


def build_demo_image(path: Path) -> None:
    """Write a mostly gray image with a thin band of saturated orange."""
    pixels = np.full((200, 300, 3), 205, dtype=np.uint8)
    pixels[:, :60] = (40, 44, 52)
    pixels[90:96, :] = (255, 120, 0)
    Image.fromarray(pixels).save(path)


def run_api_example(image_path: Path) -> bool:
    """Extract a five color palette with a fixed seed."""
    extractor = PaletteExtractor(ExtractionConfig(max_colors=5, seed=7))

    try:
        palette = extractor.extract_from_source(image_path)
    except ImageDecodeError as e:
        print(f"Could not read {image_path}: {e}")
        return False

    if not palette:
        print("No palette: image has no opaque pixels.")
        return True

    for entry in palette:
        print(f"  {entry.hex}  {format_percentage(entry.percentage):>4}  text {entry.text_color}")
    return True


def main():
    """Run the API example on a generated image or one given on the command line."""
    if len(sys.argv) > 1:
        image_path = Path(sys.argv[1])
    else:
        image_path = Path("./chromapick_demo.png")
        build_demo_image(image_path)

    print(f"Palette of {image_path}:")
    if not run_api_example(image_path):
        sys.exit(1)

    print("\nThe same palette from the command line:")
    print(f"  chromapick extract {image_path} --max-colors 5 --seed 7")


if __name__ == "__main__":
    main()
