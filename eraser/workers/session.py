"""
Image Session - Per-Image Lifecycle
===================================
Drives one image from decoded pixels to a cleaned, exportable result.

States:
    IDLE -> LOADING -> AWAITING_KERNEL -> READY
    LOADING / AWAITING_KERNEL -> FAILED

Any config or logo change after loading issues a new job and bumps the
session's generation counter. A completion carrying an older generation
is stale and is rejected, which is how superseded jobs are cancelled.
"""

import logging
import uuid
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from PyQt6.QtCore import QObject, pyqtSignal

from eraser.core.compositor import apply_overlay
from eraser.core.errors import StaleResult
from eraser.core.models import ForceMode, Job, LogoOverlay, PixelBuffer, ProcessingConfig
from eraser.workers.router import JobRouter

logger = logging.getLogger(__name__)

# Appended to the source file stem on export
CLEAN_SUFFIX = "_clean"


def clean_filename(source_name: str) -> str:
    """'photo.final.jpg' -> 'photo.final_clean.png'"""
    return f"{Path(source_name).stem}{CLEAN_SUFFIX}.png"


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    AWAITING_KERNEL = "awaiting_kernel"
    READY = "ready"
    FAILED = "failed"


class ImageSession(QObject):
    """
    One image, its settings, and its latest result.

    Signals:
        state_changed(SessionState): Emitted on every transition
        ready(PixelBuffer): Final buffer (cleaned + logo) is available
        failed(str): Loading or processing failed
    """

    state_changed = pyqtSignal(object)  # SessionState
    ready = pyqtSignal(object)  # PixelBuffer
    failed = pyqtSignal(str)

    def __init__(
            self,
            router: JobRouter,
            name: str = "image.png",
            config: Optional[ProcessingConfig] = None,
            overlay: Optional[LogoOverlay] = None,
            parent=None
    ):
        """
        Initialize the session and register it with the router.

        Args:
            router: Router shared by every session.
            name: Source file name, used for the export name.
            config: Initial processing settings.
            overlay: Process-wide logo settings.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.id = uuid.uuid4().hex[:9]
        self.name = name
        self.config = config or ProcessingConfig()
        self.overlay = overlay

        self._router = router
        self._state = SessionState.IDLE
        self._source: Optional[PixelBuffer] = None
        self._result: Optional[PixelBuffer] = None
        self._generation = 0
        self._destroyed = False
        self.error_message = ""

        router.register(self)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def result(self) -> Optional[PixelBuffer]:
        """Final buffer; only set while READY."""
        return self._result if self._state == SessionState.READY else None

    @property
    def is_settled(self) -> bool:
        return self._state in (SessionState.READY, SessionState.FAILED)

    def _set_state(self, state: SessionState):
        if state != self._state:
            logger.debug("Session %s: %s -> %s", self.id, self._state.value, state.value)
            self._state = state
            self.state_changed.emit(state)

    # ===== Loading =====

    def load(self, width: int, height: int, rgba: bytes) -> int:
        """
        Take decoded pixels and dispatch the first job.

        Args:
            width: Image width.
            height: Image height.
            rgba: Flat RGBA bytes, length width * height * 4.

        Returns:
            Generation of the dispatched job, or 0 if decoding failed.
        """
        self._set_state(SessionState.LOADING)
        try:
            self._source = PixelBuffer.from_bytes(width, height, rgba)
        except ValueError as e:
            self._fail(f"Cannot decode image: {e}")
            return 0
        return self._dispatch()

    def load_image(self, image: Image.Image) -> int:
        """Convenience wrapper around load() for a PIL image."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return self.load(image.width, image.height, image.tobytes("raw", "RGBA"))

    # ===== Edits =====

    def update_config(
            self,
            force_mode: Optional[ForceMode] = None,
            alpha_gain: Optional[float] = None
    ) -> int:
        """
        Change the processing settings; re-processes once loaded.

        Returns:
            Generation of the new job, or 0 if nothing was dispatched.
        """
        self.config = self.config.with_changes(force_mode, alpha_gain)
        return self.reprocess()

    def set_overlay(self, overlay: Optional[LogoOverlay]) -> int:
        self.overlay = overlay
        return self.reprocess()

    def reprocess(self) -> int:
        """
        Issue a fresh job if pixels are loaded.

        Any job still in flight is superseded.
        """
        if self._destroyed or self._source is None:
            return 0
        return self._dispatch()

    def _dispatch(self) -> int:
        self._generation += 1
        self._result = None
        self.error_message = ""
        job = Job(
            session_id=self.id,
            generation=self._generation,
            input=self._source.copy(),  # kernel owns this copy
            config=self.config
        )
        self._router.submit(job)
        self._set_state(SessionState.AWAITING_KERNEL)
        return self._generation

    # ===== Completions =====

    def _check_current(self, generation: int):
        if self._destroyed:
            raise StaleResult(f"Session {self.id} was destroyed")
        if generation != self._generation:
            raise StaleResult(
                f"Session {self.id} job {generation} superseded by {self._generation}"
            )

    def handle_result(self, generation: int, image_data: PixelBuffer):
        """
        Accept the kernel result and composite the logo on top.

        Raises:
            StaleResult: If the job was superseded or the session destroyed.
        """
        self._check_current(generation)
        try:
            final = apply_overlay(image_data, self.overlay, self.config.force_mode)
        except (OSError, ValueError) as e:
            self._fail(f"Cannot apply logo: {e}")
            return

        self._result = final
        self._set_state(SessionState.READY)
        self.ready.emit(final)

    def handle_error(self, generation: int, reason: str):
        """
        Raises:
            StaleResult: If the job was superseded or the session destroyed.
        """
        self._check_current(generation)
        self._fail(reason)

    def _fail(self, reason: str):
        logger.warning("Session %s (%s) failed: %s", self.id, self.name, reason)
        self.error_message = reason
        self._result = None
        self._set_state(SessionState.FAILED)
        self.failed.emit(reason)

    # ===== Export / teardown =====

    def export(self, output_dir: Union[str, Path]) -> Path:
        """
        Save the final buffer as PNG.

        Raises:
            RuntimeError: If the session is not READY.
        """
        if self.result is None:
            raise RuntimeError(f"Session {self.id} has no result to export")

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / clean_filename(self.name)
        self.result.to_image().save(output_path, format="PNG")
        return output_path

    def destroy(self):
        """Detach from the router; later completions are discarded."""
        self._destroyed = True
        self._router.unregister(self.id)
