"""Viewer load-state machine and lock-protected transitions."""

from __future__ import annotations

import asyncio
from enum import Enum


class ViewerState(str, Enum):
    """Finite state machine for file-load actions.

    Only one load (chat or media) may run at a time; clearing is refused while
    a load is in progress.
    """

    IDLE = "IDLE"
    LOADING_CHAT = "LOADING_CHAT"
    LOADING_MEDIA = "LOADING_MEDIA"
    CLEARING = "CLEARING"


class ViewerStateManager:
    """Manage state transitions with async lock semantics."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = ViewerState.IDLE

    async def get_state(self) -> ViewerState:
        """Return the current state under lock."""
        async with self._lock:
            return self._state

    async def transition_to(self, new_state: ViewerState) -> ViewerState:
        """Transition to a new state and return it."""
        async with self._lock:
            self._state = new_state
            return self._state

    async def transition_if(
        self,
        expected_state: ViewerState,
        new_state: ViewerState,
    ) -> bool:
        """Transition only when current state matches expected state."""
        async with self._lock:
            if self._state != expected_state:
                return False
            self._state = new_state
            return True

    async def begin(self, new_state: ViewerState) -> bool:
        """Enter a busy state from IDLE; False when another action is running."""
        return await self.transition_if(ViewerState.IDLE, new_state)

    async def finish(self) -> None:
        await self.transition_to(ViewerState.IDLE)

    async def is_idle(self) -> bool:
        async with self._lock:
            return self._state == ViewerState.IDLE
