"""
Unblend Kernel
==============
Reverses the alpha blending of a white watermark over the image.

The watermark is modelled as a uniformly white layer composited with the
per-pixel opacity of the mask:
    observed = (1 - a) * original + a * 255

Inverting it:
    original = (observed - 255 * a) / (1 - a)

Technical Notes:
- a = clamp(mask_alpha * gain, 0, 1); gain > 1 removes stubborn residue
- Where a >= 1 the original is unrecoverable; the observed value is kept
- Only the mask-sized rectangle is touched, the image alpha channel never is
- All math in float32, written back rounded and clamped to 0-255
"""

import logging
from typing import Tuple

import numpy as np

from .errors import RegionOutOfBounds
from .models import MaskSet, OpacityMask, PixelBuffer, ProcessingConfig
from .placement import resolve

logger = logging.getLogger(__name__)

# Colour of the watermark layer
LOGO_VALUE = 255.0


def reconstruct(
        buffer: PixelBuffer,
        mask: OpacityMask,
        origin: Tuple[int, int],
        gain: float = 1.0
) -> PixelBuffer:
    """
    Recover the pixels under the watermark region.

    Args:
        buffer: Watermarked image. Not modified.
        mask: Opacity mask to invert.
        origin: (x, y) of the mask's top-left corner inside the image.
        gain: Multiplier on the mask alphas before inversion.

    Returns:
        New PixelBuffer; pixels outside the region are copied verbatim.

    Raises:
        RegionOutOfBounds: If the mask rectangle does not fit the image.
    """
    x, y = origin
    if x < 0 or y < 0 or x + mask.width > buffer.width or y + mask.height > buffer.height:
        raise RegionOutOfBounds(x, y, buffer.width, buffer.height)

    result = buffer.copy()
    region = result.rgba[y:y + mask.height, x:x + mask.width, :3].astype(np.float32)

    alpha = np.clip(mask.grid() * np.float32(gain), 0.0, 1.0)[:, :, np.newaxis]
    opaque = alpha >= 1.0

    # Fully opaque pixels would divide by zero; they keep the observed value
    denominator = np.where(opaque, 1.0, 1.0 - alpha)
    restored = (region - alpha * LOGO_VALUE) / denominator
    restored = np.where(opaque, region, restored)

    result.rgba[y:y + mask.height, x:x + mask.width, :3] = np.clip(
        np.rint(restored), 0, 255
    ).astype(np.uint8)
    return result


def remove_watermark(
        buffer: PixelBuffer,
        masks: MaskSet,
        config: ProcessingConfig
) -> PixelBuffer:
    """
    Resolve the corner placement for an image and unblend it.

    An image too small to hold the watermark passes through unmodified.
    """
    try:
        placement = resolve(buffer.width, buffer.height, config.force_mode)
    except RegionOutOfBounds as e:
        logger.debug("Skipping reconstruction: %s", e)
        return buffer.copy()

    mask = masks.get(placement.mode)
    return reconstruct(buffer, mask, placement.origin, config.alpha_gain)
