"""
Logo Compositor
===============
Draws a replacement logo where the watermark used to be.

Technical Notes:
- The logo is fitted into the watermark box keeping its aspect ratio,
  then multiplied by the user's scale
- Its anchor uses the same bottom-right formula as the removal engine
- RGBA alpha compositing is used so the logo's own transparency is kept
- A logo that would start outside the image is skipped, not an error
"""

import logging
from typing import Optional, Tuple

from PIL import Image

from .errors import RegionOutOfBounds
from .models import ForceMode, LogoOverlay, PixelBuffer
from .placement import PLACEMENT_SPECS, anchor_bottom_right, resolve_mode

logger = logging.getLogger(__name__)


def fit_logo_size(
        logo_size: Tuple[int, int],
        target_size: int,
        scale: float = 1.0
) -> Tuple[int, int]:
    """
    Scale a logo to fit a square box, preserving its aspect ratio.

    Args:
        logo_size: (width, height) of the source logo.
        target_size: Side of the watermark box.
        scale: Additional user scale factor.

    Returns:
        (width, height) of the drawn logo, never smaller than 1px.
    """
    logo_w, logo_h = logo_size
    factor = min(target_size / logo_w, target_size / logo_h) * scale
    return max(1, round(logo_w * factor)), max(1, round(logo_h * factor))


def _apply_opacity(logo: Image.Image, opacity: float) -> Image.Image:
    if opacity >= 1.0:
        return logo
    alpha = logo.getchannel("A").point(lambda v: int(round(v * opacity)))
    logo.putalpha(alpha)
    return logo


def apply_overlay(
        buffer: PixelBuffer,
        overlay: Optional[LogoOverlay],
        force_mode: ForceMode = ForceMode.AUTO
) -> PixelBuffer:
    """
    Composite the overlay logo onto a cleaned image.

    Args:
        buffer: Image to draw on. Not modified.
        overlay: Logo settings, or None when no logo is configured.
        force_mode: Same mode the removal used, so both land on the same spot.

    Returns:
        A new PixelBuffer with the logo drawn, or the input buffer unchanged
        when there is nothing to draw.
    """
    if overlay is None or not overlay.enabled:
        return buffer

    mode = resolve_mode(buffer.width, buffer.height, force_mode)
    spec = PLACEMENT_SPECS[mode]

    logo = overlay.image
    if logo.mode != "RGBA":
        logo = logo.convert("RGBA")
    logo_w, logo_h = fit_logo_size(logo.size, spec.target_size, overlay.scale)

    try:
        x, y = anchor_bottom_right(buffer.width, buffer.height, spec, logo_w, logo_h)
    except RegionOutOfBounds as e:
        logger.debug("Skipping logo: %s", e)
        return buffer

    logo = logo.resize((logo_w, logo_h), Image.Resampling.LANCZOS)
    logo = _apply_opacity(logo, overlay.opacity)

    base_image = buffer.to_image()
    logo_layer = Image.new("RGBA", base_image.size, (0, 0, 0, 0))
    logo_layer.paste(logo, (x, y))

    return PixelBuffer.from_image(Image.alpha_composite(base_image, logo_layer))
