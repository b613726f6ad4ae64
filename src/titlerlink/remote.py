"""Interface of the remote titling application as seen by the feedback engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

# A state record arrives as JSON text, a decoded mapping, or nothing.
RawState = Mapping[str, Any] | str | bytes | None


@runtime_checkable
class RemoteCollaborator(Protocol):
    """Asynchronous calls the engine makes into the remote application.

    Implementations own the transport. Any exception they raise is treated
    as a transport failure.
    """

    async def query_feedback_state(
        self, actor_id: str, feedback_id: str, options: Mapping[str, Any]
    ) -> RawState:
        """Current state record for one feedback instance."""
        ...

    async def get_play_states(self, namespace: str) -> Mapping[str, Mapping[str, Any]]:
        """Play-state records (``{"playState": ...}``) keyed by query key."""
        ...

    async def get_image_set(self, namespace: str) -> Mapping[str, str]:
        """Named base64 PNG images to pre-seed the image cache with."""
        ...
