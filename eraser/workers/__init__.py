"""
Workers Module - Async Thread Management
========================================
Contains the QThread kernel and the coordinating-side objects around it.

All unblend computations run on one separate thread to keep the caller
responsive.

Components:
- KernelWorker: The thread that runs every job in submission order
- JobRouter: Sends jobs to the kernel and routes completions by id
- ImageSession: Per-image state machine (load, process, composite, export)
- BatchController: Masks, shared logo overlay and session bookkeeping
"""

from .batch import BatchController
from .kernel_worker import KernelWorker
from .protocol import MessageType, ProcessPayload, ResultPayload, WorkerMessage
from .router import JobRouter
from .session import ImageSession, SessionState, clean_filename

__all__ = [
    # Protocol
    "MessageType",
    "ProcessPayload",
    "ResultPayload",
    "WorkerMessage",
    # Threads
    "KernelWorker",
    "JobRouter",
    # Sessions
    "ImageSession",
    "SessionState",
    "clean_filename",
    "BatchController",
]
