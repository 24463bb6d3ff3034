"""
Tests for mcp_core.utils

Covers:
- text heuristics (tokenize, topics, sentiment, urgency)
- BoundedCache FIFO eviction
- KeyedLock ordering and cleanup
"""

import asyncio

import pytest

from mcp_core.utils.cache import BoundedCache
from mcp_core.utils.locks import KeyedLock
from mcp_core.utils.text import (
    count_matches,
    extract_topics,
    has_urgency,
    sentiment_score,
    tokenize,
)


# ======================================================================
# Text heuristics
# ======================================================================


class TestText:
    def test_tokenize_strips_punctuation(self):
        assert tokenize("¿Hola, Mundo?") == ["hola", "mundo"]

    def test_extract_topics_drops_short_and_stop_words(self):
        topics = extract_topics("Quiero crear un artículo sobre marketing digital")
        assert topics == ["crear", "artículo", "marketing", "digital"]

    def test_extract_topics_limit(self):
        assert len(extract_topics("uno dos tres cuatro cinco seis siete ocho nueve diez")) == 5

    def test_count_matches_case_insensitive(self):
        assert count_matches("Gracias, POR FAVOR", ("por favor", "gracias", "hola")) == 2

    def test_sentiment_positive(self):
        assert sentiment_score("Excelente, muy bueno") == pytest.approx(0.2)

    def test_sentiment_negative(self):
        assert sentiment_score("hay un error y un problema") == pytest.approx(-0.2)

    def test_sentiment_clamped(self):
        text = " ".join(["bueno excelente perfecto genial gracias"] * 3)
        assert -1.0 <= sentiment_score(text) <= 1.0

    def test_urgency(self):
        assert has_urgency("Es URGENTE")
        assert not has_urgency("Buenos días")


# ======================================================================
# BoundedCache
# ======================================================================


class TestBoundedCache:
    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            BoundedCache(0)

    def test_evicts_first_inserted(self):
        cache: BoundedCache[int, str] = BoundedCache(100)
        for i in range(100):
            assert cache.put(i, str(i)) is None

        evicted = cache.put(100, "100")

        assert evicted == 0
        assert len(cache) == 100
        assert 0 not in cache
        assert cache.get(100) == "100"

    def test_overwrite_keeps_position(self):
        cache: BoundedCache[str, int] = BoundedCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 3)

        assert cache.put("c", 4) == "a"
        assert cache.keys() == ["b", "c"]

    def test_clear(self):
        cache: BoundedCache[str, int] = BoundedCache(2)
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a", 0) == 0


# ======================================================================
# KeyedLock
# ======================================================================


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_same_key_runs_in_arrival_order(self):
        locks = KeyedLock()
        order: list[int] = []

        async def writer(index: int):
            async with locks.acquire("session"):
                await asyncio.sleep(0)
                order.append(index)

        await asyncio.gather(*(writer(i) for i in range(5)))

        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        locks = KeyedLock()

        async with locks.acquire("a"):
            assert locks.locked("a")
            async with locks.acquire("b"):
                assert locks.locked("b")

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self):
        locks = KeyedLock()
        async with locks.acquire("a"):
            assert len(locks) == 1
        assert len(locks) == 0
        assert not locks.locked("a")
