"""
Job Router
==========
Coordinating-side endpoint of the kernel thread.

Responsibilities:
- Start the kernel thread and send it the masks once
- Forward jobs without blocking the caller
- Route each completion to the session whose id it carries
- Drop completions for destroyed or superseded sessions
"""

import logging
from typing import TYPE_CHECKING, Dict, Optional

from PyQt6.QtCore import QObject

from eraser.core.errors import StaleResult
from eraser.core.models import Job, MaskSet
from eraser.workers.kernel_worker import KernelWorker
from eraser.workers.protocol import MessageType, WorkerMessage

if TYPE_CHECKING:
    from eraser.workers.session import ImageSession

logger = logging.getLogger(__name__)


class JobRouter(QObject):
    """
    Routes jobs to the shared kernel thread and completions back to sessions.

    USAGE:
        router = JobRouter()
        router.start()
        router.initialize(masks)
        router.register(session)
        router.submit(job)
    """

    def __init__(self, worker: Optional[KernelWorker] = None, parent=None):
        super().__init__(parent)
        self._worker = worker if worker is not None else KernelWorker()
        self._worker.message_ready.connect(self.deliver)
        self._sessions: Dict[str, "ImageSession"] = {}
        self._initialized = False

    def start(self):
        """Start the kernel thread if it is not running yet."""
        if not self._worker.isRunning():
            self._worker.start()

    def initialize(self, masks: MaskSet):
        """
        Hand the shared masks to the kernel. Must precede any submit.

        The inbound queue is FIFO, so the masks are in place before the
        first job is picked up.
        """
        if self._initialized:
            raise RuntimeError("Kernel masks are already initialized")
        self._worker.post(WorkerMessage.init_masks(masks))
        self._initialized = True

    def register(self, session: "ImageSession"):
        self._sessions[session.id] = session

    def unregister(self, session_id: str):
        self._sessions.pop(session_id, None)

    def is_live(self, session_id: str) -> bool:
        return session_id in self._sessions

    def submit(self, job: Job):
        """
        Send a job to the kernel. Ownership of job.input passes to the kernel.

        Raises:
            RuntimeError: If called before initialize().
        """
        if not self._initialized:
            raise RuntimeError("Cannot submit jobs before the masks are initialized")

        logger.debug("Submitting job %s", job.id)
        self._worker.post(WorkerMessage.process_image(
            job.session_id, job.generation, job.input, job.config
        ))

    def deliver(self, message: WorkerMessage):
        """Route one completion message to its session."""
        session = self._sessions.get(message.id)
        if session is None:
            logger.debug("Dropping %s for closed session %s", message.type.value, message.id)
            return

        try:
            if message.type == MessageType.PROCESS_COMPLETE:
                session.handle_result(message.generation, message.payload.image_data)
            elif message.type == MessageType.PROCESS_ERROR:
                session.handle_error(message.generation, message.payload)
            else:
                logger.warning("Router ignoring unexpected message %s", message.type)
        except StaleResult as e:
            logger.debug("Dropping stale completion: %s", e)

    def shutdown(self, timeout_ms: int = 5000):
        """Stop the kernel thread after it drains the queued jobs."""
        if self._worker.isRunning():
            self._worker.post(WorkerMessage.shutdown())
            self._worker.wait(timeout_ms)
        self._sessions.clear()
