"""Tests for the rate governor."""
import asyncio
from unittest.mock import patch

from catalog_ingest.rate_limiter import RateGovernor


def test_wait_sleeps_fixed_interval():
    calls = []
    governor = RateGovernor(interval=1.0, sleep=calls.append)

    governor.wait()
    governor.wait()

    assert calls == [1.0, 1.0]


def test_zero_interval_does_not_sleep():
    calls = []
    RateGovernor(interval=0, sleep=calls.append).wait()
    assert calls == []


def test_negative_interval_is_clamped():
    assert RateGovernor(interval=-3).interval == 0.0


def test_wait_async_uses_asyncio_sleep():
    async def fake_sleep(seconds):
        slept.append(seconds)

    slept = []
    with patch("catalog_ingest.rate_limiter.asyncio.sleep", fake_sleep):
        asyncio.run(RateGovernor(interval=0.5).wait_async())

    assert slept == [0.5]
