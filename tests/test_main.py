"""
Test script for the command-line controller.

Run with: python -m pytest tests/test_main.py -v
"""

import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from PIL import Image

import main


def create_workspace(tmp: Path):
    """Write valid mask templates and two input images."""
    mask_small = tmp / "mask_48.png"
    mask_large = tmp / "mask_96.png"
    Image.new("RGB", (48, 48), (128, 128, 128)).save(mask_small)
    Image.new("RGB", (96, 96), (128, 128, 128)).save(mask_large)

    images = []
    for name in ("first.png", "second.png"):
        path = tmp / name
        Image.new("RGBA", (300, 300), (90, 90, 90, 255)).save(path)
        images.append(path)

    return mask_small, mask_large, images


def run_cli(images, output_dir, mask_small, mask_large) -> int:
    return main.main([
        *map(str, images),
        "-o", str(output_dir),
        "--mask-small", str(mask_small),
        "--mask-large", str(mask_large),
    ])


def test_cli_exports_every_image():
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        mask_small, mask_large, images = create_workspace(tmp)
        output_dir = tmp / "cleaned"

        assert run_cli(images, output_dir, mask_small, mask_large) == 0
        assert (output_dir / "first_clean.png").exists()
        assert (output_dir / "second_clean.png").exists()


def test_cli_reports_unwritable_output_dir():
    """An output path under a regular file fails every export with exit code 1."""
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        mask_small, mask_large, images = create_workspace(tmp)
        blocker = tmp / "blocker"
        blocker.write_text("not a directory")

        assert run_cli(images, blocker / "out", mask_small, mask_large) == 1
        assert blocker.is_file()


def test_cli_missing_masks_exit_code():
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        _, _, images = create_workspace(tmp)

        assert run_cli(images, tmp / "out", tmp / "nope_48.png", tmp / "nope_96.png") == 2


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
