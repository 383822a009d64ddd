"""
Worker Protocol
===============
Messages exchanged between the coordinating thread and the kernel thread.

| Direction   | Type             | Payload                                  |
|-------------|------------------|------------------------------------------|
| to kernel   | INIT_MASKS       | MaskSet                                  |
| to kernel   | PROCESS_IMAGE    | ProcessPayload(image_data, config)       |
| to kernel   | SHUTDOWN         | None                                     |
| from kernel | PROCESS_COMPLETE | ResultPayload(image_data)                |
| from kernel | PROCESS_ERROR    | str                                      |

Every job message carries the session id and the job generation so
the router can send the completion back to the right session.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from eraser.core.models import MaskSet, PixelBuffer, ProcessingConfig


class MessageType(str, Enum):
    INIT_MASKS = "INIT_MASKS"
    PROCESS_IMAGE = "PROCESS_IMAGE"
    PROCESS_COMPLETE = "PROCESS_COMPLETE"
    PROCESS_ERROR = "PROCESS_ERROR"
    SHUTDOWN = "SHUTDOWN"


@dataclass(eq=False)
class ProcessPayload:
    image_data: PixelBuffer
    config: ProcessingConfig


@dataclass(eq=False)
class ResultPayload:
    image_data: PixelBuffer


@dataclass(eq=False)
class WorkerMessage:
    """A single message crossing the thread boundary."""
    type: MessageType
    payload: Any = None
    id: Optional[str] = None
    generation: int = 0

    @classmethod
    def init_masks(cls, masks: MaskSet) -> "WorkerMessage":
        return cls(MessageType.INIT_MASKS, masks)

    @classmethod
    def process_image(
            cls,
            session_id: str,
            generation: int,
            image_data: PixelBuffer,
            config: ProcessingConfig
    ) -> "WorkerMessage":
        return cls(
            MessageType.PROCESS_IMAGE,
            ProcessPayload(image_data, config),
            session_id,
            generation
        )

    @classmethod
    def process_complete(
            cls,
            session_id: str,
            generation: int,
            image_data: PixelBuffer
    ) -> "WorkerMessage":
        return cls(
            MessageType.PROCESS_COMPLETE,
            ResultPayload(image_data),
            session_id,
            generation
        )

    @classmethod
    def process_error(cls, session_id: str, generation: int, reason: str) -> "WorkerMessage":
        return cls(MessageType.PROCESS_ERROR, reason, session_id, generation)

    @classmethod
    def shutdown(cls) -> "WorkerMessage":
        return cls(MessageType.SHUTDOWN)
