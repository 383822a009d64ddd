"""
Engine Errors
=============
Error taxonomy shared by the core algorithms and the worker layer.

- AssetLoadError: fatal, the opacity masks could not be loaded
- RegionOutOfBounds: per-image, the corner region does not fit the image
- ProcessError: per-job, reported back to the owning session only
- StaleResult: internal, a completion arrived for a superseded job
"""


class EngineError(Exception):
    """Base class for all watermark engine errors."""
    pass


class AssetLoadError(EngineError):
    """A reference mask template could not be decoded."""
    pass


class RegionOutOfBounds(EngineError):
    """The watermark (or logo) box would extend outside the image."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(
            f"Region at ({x}, {y}) does not fit a {width}x{height} image"
        )
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class ProcessError(EngineError):
    """A single job failed inside the kernel."""
    pass


class StaleResult(EngineError):
    """A completion no longer matches the session's current job."""
    pass
