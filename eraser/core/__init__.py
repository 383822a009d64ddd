"""
Core Module - Pure Algorithm Logic
==================================
This module contains no Qt dependencies.
Mask loading, placement, unblending and logo compositing live here.
"""

from .compositor import apply_overlay, fit_logo_size
from .errors import (
    AssetLoadError, EngineError, ProcessError, RegionOutOfBounds, StaleResult
)
from .masks import load_mask, load_masks, mask_from_image
from .models import (
    ForceMode, Job, LogoOverlay, MaskSet, OpacityMask, PixelBuffer, ProcessingConfig
)
from .placement import (
    LARGE_IMAGE_THRESHOLD, PLACEMENT_SPECS, Placement, PlacementSpec,
    anchor_bottom_right, resolve, resolve_mode
)
from .unblend import reconstruct, remove_watermark

__all__ = [
    # Models
    "ForceMode",
    "Job",
    "LogoOverlay",
    "MaskSet",
    "OpacityMask",
    "PixelBuffer",
    "ProcessingConfig",
    # Errors
    "EngineError",
    "AssetLoadError",
    "RegionOutOfBounds",
    "ProcessError",
    "StaleResult",
    # Masks
    "load_mask",
    "load_masks",
    "mask_from_image",
    # Placement
    "LARGE_IMAGE_THRESHOLD",
    "PLACEMENT_SPECS",
    "Placement",
    "PlacementSpec",
    "anchor_bottom_right",
    "resolve",
    "resolve_mode",
    # Kernel
    "reconstruct",
    "remove_watermark",
    # Compositor
    "apply_overlay",
    "fit_logo_size",
]
