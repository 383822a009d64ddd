"""
Kernel Worker - Isolated Unblend Thread
=======================================
A single QThread that owns all numeric work.

Workflow:
1. Block on the inbound queue
2. INIT_MASKS stores the shared masks
3. PROCESS_IMAGE runs the unblend kernel and emits PROCESS_COMPLETE,
   or PROCESS_ERROR if anything goes wrong
4. SHUTDOWN ends the thread

Jobs run to completion one at a time in submission order. There is no
cancel message: a superseded job still finishes and its reply is dropped
by the router.
"""

import logging
import queue
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal

from eraser.core.errors import ProcessError
from eraser.core.models import MaskSet
from eraser.core.unblend import remove_watermark
from eraser.workers.protocol import MessageType, WorkerMessage

logger = logging.getLogger(__name__)


class KernelWorker(QThread):
    """
    Worker thread draining a FIFO queue of protocol messages.

    Signals:
        message_ready(WorkerMessage): PROCESS_COMPLETE or PROCESS_ERROR
    """

    message_ready = pyqtSignal(object)  # WorkerMessage

    def __init__(self, parent=None):
        super().__init__(parent)
        self._inbox: "queue.Queue[WorkerMessage]" = queue.Queue()
        self._masks: Optional[MaskSet] = None

    def post(self, message: WorkerMessage):
        """Queue a message for the kernel. Never blocks the caller."""
        self._inbox.put(message)

    def run(self):
        while True:
            message = self._inbox.get()

            if message.type == MessageType.SHUTDOWN:
                logger.debug("Kernel worker shutting down")
                return

            if message.type == MessageType.INIT_MASKS:
                self._masks = message.payload
                logger.debug("Kernel worker received masks")
                continue

            if message.type == MessageType.PROCESS_IMAGE:
                self.message_ready.emit(self._process(message))
                continue

            logger.warning("Kernel worker ignoring unexpected message %s", message.type)

    def _process(self, message: WorkerMessage) -> WorkerMessage:
        """Run one job; every failure becomes a PROCESS_ERROR reply."""
        try:
            if self._masks is None:
                raise ProcessError("Masks have not been initialized")

            payload = message.payload
            result = remove_watermark(payload.image_data, self._masks, payload.config)
            return WorkerMessage.process_complete(message.id, message.generation, result)

        except Exception as e:
            logger.exception("Job %s#%s failed", message.id, message.generation)
            return WorkerMessage.process_error(message.id, message.generation, str(e))
