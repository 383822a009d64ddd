"""
Batch Controller
================
Owns the process-wide state: the masks, the router and the logo overlay.

Responsibilities:
- Load the masks once; a failure stops the engine (AssetLoadError)
- Create and destroy image sessions
- Broadcast logo changes to every live session
- Tell the caller when every session has settled
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image
from PyQt6.QtCore import QObject, pyqtSignal

from eraser.core.masks import load_masks
from eraser.core.models import LogoOverlay, MaskSet, ProcessingConfig
from eraser.workers.router import JobRouter
from eraser.workers.session import ImageSession

logger = logging.getLogger(__name__)


class BatchController(QObject):
    """
    Coordinates many image sessions over one kernel thread.

    Signals:
        session_settled(ImageSession): A session reached READY or FAILED
        batch_settled(): Every live session is READY or FAILED
    """

    session_settled = pyqtSignal(object)  # ImageSession
    batch_settled = pyqtSignal()

    def __init__(self, router: Optional[JobRouter] = None, parent=None):
        super().__init__(parent)
        self.router = router if router is not None else JobRouter(parent=self)
        self.sessions: List[ImageSession] = []
        self._overlay: Optional[LogoOverlay] = None

    @property
    def overlay(self) -> Optional[LogoOverlay]:
        return self._overlay

    def start(
            self,
            small_template: Union[str, Path],
            large_template: Union[str, Path]
    ) -> MaskSet:
        """
        Load the masks and bring up the kernel thread.

        Raises:
            AssetLoadError: If either template cannot be loaded.
        """
        masks = load_masks(small_template, large_template)
        self.start_with_masks(masks)
        return masks

    def start_with_masks(self, masks: MaskSet):
        self.router.start()
        self.router.initialize(masks)

    def add_image(
            self,
            image: Image.Image,
            name: str = "image.png",
            config: Optional[ProcessingConfig] = None
    ) -> ImageSession:
        """Create a session for a decoded image and start processing it."""
        session = ImageSession(
            self.router, name=name, config=config, overlay=self._overlay, parent=self
        )
        session.ready.connect(lambda _buffer, s=session: self._on_settled(s))
        session.failed.connect(lambda _reason, s=session: self._on_settled(s))
        self.sessions.append(session)
        session.load_image(image)
        return session

    def remove(self, session: ImageSession):
        session.destroy()
        if session in self.sessions:
            self.sessions.remove(session)
        session.deleteLater()
        self._check_batch_settled()

    def set_overlay(self, overlay: Optional[LogoOverlay]):
        """Replace the shared logo and re-process every live session."""
        self._overlay = overlay
        logger.info("Logo overlay changed, re-processing %d images", len(self.sessions))
        for session in self.sessions:
            session.set_overlay(overlay)

    def all_settled(self) -> bool:
        return all(session.is_settled for session in self.sessions)

    def shutdown(self):
        for session in self.sessions:
            session.destroy()
        self.sessions.clear()
        self.router.shutdown()

    def _on_settled(self, session: ImageSession):
        self.session_settled.emit(session)
        self._check_batch_settled()

    def _check_batch_settled(self):
        if self.sessions and self.all_settled():
            self.batch_settled.emit()
