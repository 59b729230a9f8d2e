from __future__ import annotations

import asyncio
import random

import pytest

from roadrisk.state.store import Readiness, RiskState, random_accident_rates


async def _settle() -> None:
    await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_wait_snapshot_requires_both_flags_in_one_observation() -> None:
    state = RiskState(2)
    waiter = asyncio.create_task(state.wait_snapshot())
    await _settle()

    await state.update_congestion([9, 9])
    await _settle()
    assert not waiter.done()

    # Withdraw traffic, then deliver weather alone: still not both at once.
    await state.clear_ready(Readiness.TRAFFIC)
    await state.update_weather(1)
    await _settle()
    assert not waiter.done()

    await state.update_congestion([1, 2])
    snapshot = await asyncio.wait_for(waiter, timeout=1.0)

    assert snapshot.congestion == (1.0, 2.0)
    assert snapshot.weather_code == 1
    assert state.ready == Readiness.NONE


@pytest.mark.asyncio
async def test_volume_updates_do_not_wake_consumer_and_are_picked_up_later() -> None:
    state = RiskState(3)
    waiter = asyncio.create_task(state.wait_snapshot())
    await _settle()

    await state.update_volumes([40000, 10, 50000])
    await state.update_weather(0)
    await _settle()
    assert not waiter.done()

    await state.update_congestion([0, 0, 0])
    snapshot = await asyncio.wait_for(waiter, timeout=1.0)

    assert snapshot.passing_volume == (40000.0, 10.0, 50000.0)


@pytest.mark.asyncio
async def test_snapshot_is_an_owned_copy() -> None:
    state = RiskState(2, accident_rates=[0.02, 0.0])
    await state.update_congestion([8, 8])
    before = await state.snapshot()

    await state.update_congestion([1, 1])

    assert before.congestion == (8.0, 8.0)
    assert (await state.snapshot()).congestion == (1.0, 1.0)
    # snapshot() never consumes readiness
    assert state.ready == Readiness.TRAFFIC


@pytest.mark.asyncio
async def test_updates_are_truncated_to_num_segments() -> None:
    state = RiskState(2)

    written = await state.update_congestion([9, 9, 9, 9])
    short = await state.update_volumes([123])
    snapshot = await state.snapshot()

    assert written == 2
    assert short == 1
    assert snapshot.congestion == (9.0, 9.0)
    assert snapshot.passing_volume == (123.0, 0.0)


@pytest.mark.asyncio
async def test_zero_segments_still_cycles() -> None:
    state = RiskState(0)
    await state.update_congestion([5, 5])
    await state.update_weather(1)

    snapshot = await asyncio.wait_for(state.wait_snapshot(), timeout=1.0)

    assert snapshot.num_segments == 0
    assert snapshot.scores() == []


def test_snapshot_scores_follow_weighting() -> None:
    state = RiskState(1, accident_rates=[0.02])
    snapshot = state._copy()  # noqa: SLF001

    assert snapshot.scores() == [0.2]


def test_accident_rates_must_match_segments() -> None:
    with pytest.raises(ValueError):
        RiskState(2, accident_rates=[0.01])


def test_random_accident_rates_are_bounded_and_reproducible() -> None:
    first = random_accident_rates(50, rng=random.Random(7), maximum=0.05)
    second = random_accident_rates(50, rng=random.Random(7), maximum=0.05)

    assert first == second
    assert all(0.0 <= rate < 0.05 for rate in first)
