"""
Cornermark Eraser Package
=========================
Removes the fixed semi-transparent corner watermark from images and can
draw a replacement logo in its place.

Modules:
    - core: Pure algorithm logic (no Qt dependencies)
    - workers: QThread kernel, job routing and per-image sessions

Usage:
    from eraser.core import load_masks, remove_watermark
    from eraser.workers import BatchController
"""

__version__ = "1.0.0"
__app_name__ = "Cornermark Eraser"

# Core exports
from .core import (
    AssetLoadError, ForceMode, LogoOverlay, MaskSet, OpacityMask, PixelBuffer,
    ProcessError, ProcessingConfig, RegionOutOfBounds, load_masks, reconstruct,
    remove_watermark, resolve
)
# Worker exports
from .workers import BatchController, ImageSession, JobRouter, KernelWorker, SessionState

__all__ = [
    # Version info
    "__version__",
    "__app_name__",

    # Core
    "AssetLoadError",
    "ForceMode",
    "LogoOverlay",
    "MaskSet",
    "OpacityMask",
    "PixelBuffer",
    "ProcessError",
    "ProcessingConfig",
    "RegionOutOfBounds",
    "load_masks",
    "reconstruct",
    "remove_watermark",
    "resolve",

    # Workers
    "BatchController",
    "ImageSession",
    "JobRouter",
    "KernelWorker",
    "SessionState",
]
