"""
Placement Resolver
==================
Decides which watermark size applies to an image and where it sits.

The watermark always sits in the bottom-right corner:
    x = image_width - margin - box_width
    y = image_height - margin - box_height
The same anchor is used for watermark removal and for the replacement logo.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import RegionOutOfBounds
from .models import ForceMode

# Images larger than this on BOTH sides carry the large watermark
LARGE_IMAGE_THRESHOLD = 1024


@dataclass(frozen=True)
class PlacementSpec:
    """Watermark box size and its distance from the bottom-right edges."""
    target_size: int
    margin: int


PLACEMENT_SPECS: Dict[ForceMode, PlacementSpec] = {
    ForceMode.SMALL: PlacementSpec(target_size=48, margin=32),
    ForceMode.LARGE: PlacementSpec(target_size=96, margin=64),
}


@dataclass(frozen=True)
class Placement:
    """A resolved watermark box inside a specific image."""
    mode: ForceMode
    spec: PlacementSpec
    x: int
    y: int

    @property
    def origin(self) -> Tuple[int, int]:
        return self.x, self.y


def resolve_mode(width: int, height: int, force_mode: ForceMode = ForceMode.AUTO) -> ForceMode:
    """Resolve AUTO to SMALL or LARGE from the image dimensions."""
    force_mode = ForceMode(force_mode)
    if force_mode != ForceMode.AUTO:
        return force_mode
    if width > LARGE_IMAGE_THRESHOLD and height > LARGE_IMAGE_THRESHOLD:
        return ForceMode.LARGE
    return ForceMode.SMALL


def anchor_bottom_right(
        width: int,
        height: int,
        spec: PlacementSpec,
        box_width: int,
        box_height: int
) -> Tuple[int, int]:
    """
    Compute the top-left corner of a box anchored at the bottom-right margin.

    Raises:
        RegionOutOfBounds: If the box would start outside the image.
    """
    x = width - spec.margin - box_width
    y = height - spec.margin - box_height
    if x < 0 or y < 0:
        raise RegionOutOfBounds(x, y, width, height)
    return x, y


def resolve(width: int, height: int, force_mode: ForceMode = ForceMode.AUTO) -> Placement:
    """
    Resolve the watermark placement for an image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        force_mode: AUTO to infer from size, SMALL/LARGE to override.

    Returns:
        Placement with the resolved mode and the box origin.

    Raises:
        RegionOutOfBounds: If the image is too small to hold the watermark.
    """
    mode = resolve_mode(width, height, force_mode)
    spec = PLACEMENT_SPECS[mode]
    x, y = anchor_bottom_right(width, height, spec, spec.target_size, spec.target_size)
    return Placement(mode=mode, spec=spec, x=x, y=y)
