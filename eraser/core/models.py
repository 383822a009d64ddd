"""
Data Model
==========
Value types exchanged between the mask store, the kernel and the sessions.

Technical Notes:
- PixelBuffer holds RGBA pixels as a (height, width, 4) uint8 array
- OpacityMask alphas are row-major float32 and made read-only after construction
- Config dataclasses validate their ranges in __post_init__
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

import numpy as np
from PIL import Image


class ForceMode(str, Enum):
    """Which watermark size to assume for an image."""
    AUTO = "auto"
    SMALL = "small"
    LARGE = "large"


@dataclass(frozen=True, eq=False)
class OpacityMask:
    """
    Per-pixel opacity of the watermark, derived once from a template.

    Attributes:
        width: Mask width in pixels.
        height: Mask height in pixels.
        alphas: Row-major float32 values in [0, 1], length width * height.
    """
    width: int
    height: int
    alphas: np.ndarray

    def __post_init__(self):
        alphas = np.asarray(self.alphas, dtype=np.float32).reshape(-1)
        if alphas.size != self.width * self.height:
            raise ValueError(
                f"Mask needs {self.width * self.height} alphas, got {alphas.size}"
            )
        alphas = alphas.copy()
        alphas.setflags(write=False)
        object.__setattr__(self, "alphas", alphas)

    def grid(self) -> np.ndarray:
        """Return the alphas as a (height, width) view."""
        return self.alphas.reshape(self.height, self.width)

    def alpha_at(self, x: int, y: int) -> float:
        return float(self.alphas[y * self.width + x])


@dataclass(frozen=True, eq=False)
class MaskSet:
    """The two masks shared by every job for the process lifetime."""
    small: OpacityMask
    large: OpacityMask

    def get(self, mode: ForceMode) -> OpacityMask:
        if mode == ForceMode.LARGE:
            return self.large
        if mode == ForceMode.SMALL:
            return self.small
        raise ValueError(f"Mode must be resolved before picking a mask: {mode}")


@dataclass(eq=False)
class PixelBuffer:
    """Decoded RGBA raster, the unit of work handed to the kernel."""
    width: int
    height: int
    rgba: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image size {self.width}x{self.height}")
        if not isinstance(self.rgba, np.ndarray) or self.rgba.dtype != np.uint8:
            raise ValueError("Pixel data must be a uint8 array")
        if self.rgba.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Pixel data shape {self.rgba.shape} does not match "
                f"{self.width}x{self.height} RGBA"
            )

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        """
        Build a buffer from a flat RGBA byte sequence.

        Raises:
            ValueError: If the byte count does not equal width * height * 4.
        """
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} RGBA bytes, got {len(data)}")
        rgba = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(width, height, rgba.copy())

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        rgba = np.array(image, dtype=np.uint8)
        return cls(image.width, image.height, rgba)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.rgba)

    def to_bytes(self) -> bytes:
        return self.rgba.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.rgba.copy())


# Reconstruction strength limits
MIN_ALPHA_GAIN = 1.0
MAX_ALPHA_GAIN = 3.0


@dataclass(frozen=True)
class ProcessingConfig:
    """Per-image settings the user can adjust at any time."""
    force_mode: ForceMode = ForceMode.AUTO
    alpha_gain: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "force_mode", ForceMode(self.force_mode))
        if not MIN_ALPHA_GAIN <= self.alpha_gain <= MAX_ALPHA_GAIN:
            raise ValueError(
                f"Alpha gain must be between {MIN_ALPHA_GAIN} and {MAX_ALPHA_GAIN}"
            )

    def with_changes(
            self,
            force_mode: Optional[ForceMode] = None,
            alpha_gain: Optional[float] = None
    ) -> "ProcessingConfig":
        changes = {}
        if force_mode is not None:
            changes["force_mode"] = ForceMode(force_mode)
        if alpha_gain is not None:
            changes["alpha_gain"] = float(alpha_gain)
        return replace(self, **changes)


@dataclass(frozen=True, eq=False)
class LogoOverlay:
    """
    Replacement logo drawn where the watermark used to be.

    Process-wide: one overlay is shared by every session.
    """
    image: Optional[Image.Image] = None
    opacity: float = 0.8
    scale: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("Logo opacity must be between 0.0 and 1.0")
        if not 0.1 <= self.scale <= 2.0:
            raise ValueError("Logo scale must be between 0.1 and 2.0")

    @property
    def enabled(self) -> bool:
        return self.image is not None


@dataclass(eq=False)
class Job:
    """One request to the kernel; consumed exactly once."""
    session_id: str
    generation: int
    input: PixelBuffer
    config: ProcessingConfig = field(default_factory=ProcessingConfig)

    @property
    def id(self) -> str:
        return f"{self.session_id}#{self.generation}"
