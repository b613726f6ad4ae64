"""titlerlink — feedback-state caching and overlay compositing for a titling-application bridge."""

from titlerlink.cache import RequestCoalescer, TTLCache, derive_key, make_logical_id
from titlerlink.concurrency import MissReconciler, PendingKeySet, Scheduler
from titlerlink.config.schema import EngineConfig
from titlerlink.images import ImageCache, composite
from titlerlink.remote import RemoteCollaborator
from titlerlink.session import FeedbackSession
from titlerlink.types import FeedbackChange, FeedbackKind, FeedbackPayload, PlayState

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "FeedbackChange",
    "FeedbackKind",
    "FeedbackPayload",
    "FeedbackSession",
    "ImageCache",
    "MissReconciler",
    "PendingKeySet",
    "PlayState",
    "RemoteCollaborator",
    "RequestCoalescer",
    "Scheduler",
    "TTLCache",
    "composite",
    "derive_key",
    "make_logical_id",
]
