"""Tests for lock-protected viewer state transitions."""

from __future__ import annotations

import asyncio
import unittest

from chat_viewer.state import ViewerState, ViewerStateManager


class ViewerStateManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate that only one load action runs at a time."""

    async def test_begin_only_from_idle(self) -> None:
        manager = ViewerStateManager()
        self.assertTrue(await manager.begin(ViewerState.LOADING_CHAT))
        self.assertFalse(await manager.begin(ViewerState.LOADING_MEDIA))
        self.assertFalse(await manager.begin(ViewerState.CLEARING))
        self.assertEqual(await manager.get_state(), ViewerState.LOADING_CHAT)

    async def test_finish_returns_to_idle(self) -> None:
        manager = ViewerStateManager()
        await manager.begin(ViewerState.LOADING_MEDIA)
        self.assertFalse(await manager.is_idle())
        await manager.finish()
        self.assertTrue(await manager.is_idle())

    async def test_transition_if_enforces_expected_state(self) -> None:
        manager = ViewerStateManager()
        changed = await manager.transition_if(
            ViewerState.LOADING_CHAT, ViewerState.IDLE
        )
        self.assertFalse(changed)
        self.assertEqual(await manager.get_state(), ViewerState.IDLE)

        changed = await manager.transition_if(
            ViewerState.IDLE, ViewerState.CLEARING
        )
        self.assertTrue(changed)
        self.assertEqual(await manager.get_state(), ViewerState.CLEARING)

    async def test_lock_prevents_concurrent_loads(self) -> None:
        manager = ViewerStateManager()

        async def try_load() -> bool:
            await asyncio.sleep(0)
            return await manager.begin(ViewerState.LOADING_CHAT)

        results = await asyncio.gather(*(try_load() for _ in range(10)))
        self.assertEqual(sum(1 for result in results if result), 1)


if __name__ == "__main__":
    unittest.main()
