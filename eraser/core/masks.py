"""
Mask Store
==========
Builds the two opacity masks from their reference templates.

Technical Notes:
- The templates render the watermark as a light shape on a dark/transparent
  background, so brightness approximates the overlay opacity:
  alpha = max(R, G, B) / 255
- Masks are loaded once at startup and shared read-only by every job
- Any failure here is fatal to the engine and raised as AssetLoadError
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from .errors import AssetLoadError
from .models import ForceMode, MaskSet, OpacityMask
from .placement import PLACEMENT_SPECS

logger = logging.getLogger(__name__)


def mask_from_image(image: Image.Image) -> OpacityMask:
    """
    Derive an opacity mask from a decoded template image.

    Args:
        image: Template image in any PIL mode.

    Returns:
        OpacityMask with one alpha per template pixel.
    """
    rgb = np.asarray(image.convert("RGB"), dtype=np.float32)
    alphas = rgb.max(axis=2) / 255.0
    return OpacityMask(width=image.width, height=image.height, alphas=alphas)


def load_mask(path: Union[str, Path]) -> OpacityMask:
    """
    Decode a template file into an opacity mask.

    Raises:
        AssetLoadError: If the file is missing or cannot be decoded.
    """
    path = Path(path)
    try:
        with Image.open(path) as image:
            image.load()
            return mask_from_image(image)
    except (OSError, ValueError) as e:
        raise AssetLoadError(f"Cannot load mask template {path}: {e}") from e


def load_masks(
        small_path: Union[str, Path],
        large_path: Union[str, Path]
) -> MaskSet:
    """
    Load both templates and check them against the placement sizes.

    Args:
        small_path: Template for the 48px watermark.
        large_path: Template for the 96px watermark.

    Returns:
        The MaskSet shared by every job.

    Raises:
        AssetLoadError: If either template fails to load or has the wrong size.
    """
    masks = {}
    for mode, path in ((ForceMode.SMALL, small_path), (ForceMode.LARGE, large_path)):
        mask = load_mask(path)
        size = PLACEMENT_SPECS[mode].target_size
        if (mask.width, mask.height) != (size, size):
            raise AssetLoadError(
                f"{mode.value} mask must be {size}x{size}, "
                f"{path} is {mask.width}x{mask.height}"
            )
        masks[mode] = mask

    logger.info("Loaded opacity masks from %s and %s", small_path, large_path)
    return MaskSet(small=masks[ForceMode.SMALL], large=masks[ForceMode.LARGE])
