"""Tests for the token state variants and stores."""

from __future__ import annotations

import asyncio
import threading

import pytest

from msgconnect.auth.state import (
    AsyncTokenStore,
    TokenAbsent,
    TokenPending,
    TokenPresent,
    TokenStore,
)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class TestVariants:
    def test_present_requires_token(self) -> None:
        with pytest.raises(ValueError):
            TokenPresent("")

    def test_variants_compare_by_value(self) -> None:
        assert TokenPresent("abc") == TokenPresent("abc")
        assert TokenAbsent() == TokenAbsent()
        assert TokenPending() != TokenAbsent()


# ---------------------------------------------------------------------------
# TokenStore
# ---------------------------------------------------------------------------


class TestTokenStore:
    def test_starts_absent(self) -> None:
        store = TokenStore()
        assert store.state == TokenAbsent()
        assert store.access_token == ""
        assert store.is_authenticating is False

    def test_begin_enters_pending_and_clears_token(self) -> None:
        store = TokenStore()
        assert store.begin() is True
        store.settle("old-token")
        assert store.access_token == "old-token"

        assert store.begin() is True
        assert store.state == TokenPending()
        assert store.access_token == ""
        assert store.is_authenticating is True

    def test_second_begin_is_refused_while_pending(self) -> None:
        store = TokenStore()
        assert store.begin() is True
        assert store.begin() is False

    def test_settle_with_token_is_present(self) -> None:
        store = TokenStore()
        store.begin()
        store.settle("abc")
        assert store.state == TokenPresent("abc")
        assert store.is_authenticating is False

    def test_settle_without_token_is_absent(self) -> None:
        store = TokenStore()
        store.begin()
        store.settle("")
        assert store.state == TokenAbsent()
        assert store.access_token == ""

    def test_wait_settled_returns_immediately_when_idle(self) -> None:
        store = TokenStore()
        assert store.wait_settled() == TokenAbsent()

    def test_wait_settled_blocks_until_settle(self) -> None:
        store = TokenStore()
        store.begin()
        observed: list[object] = []
        waiting = threading.Event()

        def waiter() -> None:
            waiting.set()
            observed.append(store.wait_settled())

        thread = threading.Thread(target=waiter)
        thread.start()
        waiting.wait(timeout=2)
        assert observed == []

        store.settle("shared-token")
        thread.join(timeout=2)
        assert not thread.is_alive()
        assert observed == [TokenPresent("shared-token")]


# ---------------------------------------------------------------------------
# AsyncTokenStore
# ---------------------------------------------------------------------------


class TestAsyncTokenStore:
    def test_lifecycle(self) -> None:
        async def scenario() -> None:
            store = AsyncTokenStore()
            assert store.state == TokenAbsent()
            assert await store.begin() is True
            assert store.is_authenticating is True
            assert await store.begin() is False
            await store.settle("abc")
            assert store.access_token == "abc"
            assert store.is_authenticating is False

        asyncio.run(scenario())

    def test_waiter_sees_settled_state(self) -> None:
        async def scenario() -> object:
            store = AsyncTokenStore()
            await store.begin()
            waiter = asyncio.create_task(store.wait_settled())
            await asyncio.sleep(0)
            assert not waiter.done()
            await store.settle("")
            return await waiter

        assert asyncio.run(scenario()) == TokenAbsent()
