"""Feedback session — the connection-scoped owner of caches, coalescer and scheduler."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from titlerlink.cache.coalescer import RequestCoalescer
from titlerlink.cache.keys import derive_key, make_logical_id, split_logical_id
from titlerlink.cache.memory import TTLCache
from titlerlink.concurrency.reconciler import MissReconciler, PendingKeySet
from titlerlink.concurrency.scheduler import Scheduler
from titlerlink.config.schema import EngineConfig
from titlerlink.errors.exceptions import RemoteQueryError, TitlerLinkError
from titlerlink.feedback.state import FeedbackStateProcessor
from titlerlink.images.cache import ImageCache
from titlerlink.remote import RemoteCollaborator
from titlerlink.types import FeedbackChange, FeedbackKind, FeedbackPayload, PendingKey

logger = logging.getLogger(__name__)

ResolvedCallback = Callable[[list[str]], Any]

_RECONCILE_KEY = "reconcile"
_RECHECK_ALL_KEY = "all-feedbacks"
_REGISTRY_REFRESH_KEY = "registry_refresh"


class FeedbackSession:
    """Serves feedback polls for one connection to the remote application.

    Polls are answered from the TTL cache when fresh, otherwise by a single
    coalesced remote query. Change notifications pushed by the remote
    application either fill the cache directly or mark the key pending for
    the next reconciliation pass. Listeners registered with ``on_resolved``
    are told which keys to re-poll.

    A reconnect creates a new session; caches may be passed in to carry them over.
    """

    def __init__(
        self,
        remote: RemoteCollaborator,
        config: EngineConfig | None = None,
        *,
        cache: TTLCache | None = None,
        images: ImageCache | None = None,
        scheduler: Scheduler | None = None,
        on_registry_changed: Callable[[], Any] | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._remote = remote
        self._on_registry_changed = on_registry_changed
        self._listeners: list[ResolvedCallback] = []

        lifetime = self._config.cache_lifetime
        self.cache = cache if cache is not None else TTLCache(default_max_age=lifetime)
        self.images = images if images is not None else ImageCache(
            size=self._config.image_size,
            max_bytes=self._config.image_max_bytes,
            fetch_timeout=self._config.image_fetch_timeout,
        )
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.pending = PendingKeySet()
        self.coalescer = RequestCoalescer(self.cache, max_age=lifetime)
        self.reconciler = MissReconciler(
            self.coalescer,
            self.pending,
            self._query,
            on_resolved=self._notify,
            max_age=lifetime,
        )
        self._processor = FeedbackStateProcessor(
            self.images,
            play_states_fn=self._play_states,
            image_size=self._config.image_size,
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ── Controller-facing API ──

    def on_resolved(self, callback: ResolvedCallback) -> Callable[[], None]:
        """Register a callback receiving the keys to re-poll. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def resolve_feedback(
        self, logical_id: str, options: Mapping[str, Any] | None = None
    ) -> FeedbackPayload:
        """Return the display payload for a feedback instance.

        Never raises for remote or payload failures: the key is queued for
        reconciliation and an empty payload (default style) is returned.
        """
        options = dict(options or {})
        key = derive_key(logical_id, options)
        item = _pending_key(logical_id, options)
        try:
            return await self.coalescer.resolve(key, functools.partial(self._query, item))
        except TitlerLinkError as e:
            logger.warning("Feedback %s unresolved: %s", key, e)
            self._mark_pending(key, item)
            return FeedbackPayload()

    async def resolve_boolean(
        self, logical_id: str, options: Mapping[str, Any] | None = None
    ) -> bool:
        payload = await self.resolve_feedback(logical_id, options)
        return payload.as_boolean()

    async def handle_feedback_request(
        self,
        logical_id: str,
        options: Mapping[str, Any] | None = None,
        kind: FeedbackKind = FeedbackKind.ADVANCED,
    ) -> bool | dict[str, Any]:
        """Answer a controller poll: a bool for boolean feedbacks, a style mapping otherwise."""
        payload = await self.resolve_feedback(logical_id, options)
        if kind == FeedbackKind.BOOLEAN:
            return payload.as_boolean()
        return payload.as_style()

    def invalidate(self, logical_id: str, options: Mapping[str, Any] | None = None) -> bool:
        return self.cache.remove(derive_key(logical_id, options))

    def invalidate_prefix(self, prefix: str) -> int:
        return self.cache.remove_by_prefix(prefix)

    def prime(self, logical_id: str, options: Mapping[str, Any] | None = None) -> str:
        """Queue a newly subscribed feedback so its value is fetched before the first poll."""
        options = dict(options or {})
        key = derive_key(logical_id, options)
        if key not in self.cache:
            self._mark_pending(key, _pending_key(logical_id, options))
        return key

    # ── Remote-facing API ──

    async def handle_feedback_change(self, change: FeedbackChange) -> str:
        """Apply a change notification. Returns the affected cache key."""
        logical_id = make_logical_id(change.actor_id, change.feedback_id)
        key = derive_key(logical_id, change.options)

        stored = False
        if change.has_state:
            try:
                payload = await self._processor.process(change.state)
            except TitlerLinkError as e:
                logger.warning("Discarding pushed state for %s: %s", key, e)
            else:
                self.cache.store(key, payload)
                self.pending.discard(key)
                stored = True

        if not stored:
            self.cache.remove(key)
            self.pending.add(key, _pending_key(logical_id, change.options))
        self._schedule_reconcile()

        self._notify([key])
        # Change events arrive in bursts; re-poll everything once they settle
        self.scheduler.schedule(
            _RECHECK_ALL_KEY, self._recheck_all, self._config.recheck_all_delay
        )
        return key

    def handle_registry_change(self, element_id: str = "") -> None:
        """Debounce registry-change events into one ``on_registry_changed`` call."""
        logger.debug("Registry changed: %s", element_id)
        if self._on_registry_changed is None:
            return
        self.scheduler.schedule(
            _REGISTRY_REFRESH_KEY,
            self._on_registry_changed,
            self._config.registry_refresh_delay,
        )

    async def seed_images(self) -> int:
        """Pre-load the remote image set into the image cache. Returns the count stored."""
        try:
            images = await self._remote.get_image_set(self._config.image_set_namespace)
        except Exception as e:
            logger.error("Cannot fetch image set '%s': %s", self._config.image_set_namespace, e)
            return 0
        return self.images.seed(images or {})

    async def reconcile(self) -> list[str]:
        return await self.reconciler.reconcile()

    # ── Lifecycle ──

    async def close(self) -> None:
        self.scheduler.cancel_all()
        await self.scheduler.drain()
        await self.images.close()

    async def __aenter__(self) -> FeedbackSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Internals ──

    async def _query(self, item: PendingKey) -> FeedbackPayload:
        try:
            raw = await self._remote.query_feedback_state(
                item.actor_id, item.feedback_id, dict(item.options)
            )
        except TitlerLinkError:
            raise
        except Exception as e:
            raise RemoteQueryError(
                f"Query for {item.actor_id}~{item.feedback_id} failed: {e}",
                actor_id=item.actor_id,
                feedback_id=item.feedback_id,
                original=e,
            ) from e
        return await self._processor.process(raw)

    async def _play_states(self) -> Mapping[str, Any]:
        return await self._remote.get_play_states(self._config.play_state_namespace)

    def _mark_pending(self, key: str, item: PendingKey) -> None:
        self.pending.add(key, item)
        self._schedule_reconcile()

    def _schedule_reconcile(self) -> None:
        self.scheduler.schedule(
            _RECONCILE_KEY, self.reconciler.reconcile, self._config.reconcile_delay
        )

    def _recheck_all(self) -> None:
        self._notify(self.cache.keys())

    def _notify(self, keys: list[str]) -> None:
        for callback in list(self._listeners):
            try:
                callback(keys)
            except Exception:
                logger.exception("on_resolved callback failed")


def _pending_key(logical_id: str, options: Mapping[str, Any]) -> PendingKey:
    actor_id, feedback_id = split_logical_id(logical_id)
    return PendingKey(actor_id=actor_id, feedback_id=feedback_id, options=dict(options))
