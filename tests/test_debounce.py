import asyncio

import pytest

from typeahead.debounce import DebounceGate


@pytest.mark.asyncio
async def test_burst_collapses_to_latest_query():
    fired = []
    gate = DebounceGate(fired.append, delay_ms=20)

    for query in ["a", "ab", "abc"]:
        gate.submit(query)

    assert gate.pending
    assert gate.pending_query == "abc"
    await asyncio.sleep(0.08)
    assert fired == ["abc"]
    assert not gate.pending


@pytest.mark.asyncio
async def test_each_quiet_period_fires_once():
    fired = []
    gate = DebounceGate(fired.append, delay_ms=10)

    gate.submit("abc")
    await asyncio.sleep(0.05)
    gate.submit("abcd")
    await asyncio.sleep(0.05)

    assert fired == ["abc", "abcd"]


@pytest.mark.asyncio
async def test_cancel_prevents_late_callback():
    fired = []
    gate = DebounceGate(fired.append, delay_ms=10)

    gate.submit("abc")
    gate.cancel()
    await asyncio.sleep(0.05)

    assert fired == []
    assert not gate.pending
    assert gate.pending_query is None


@pytest.mark.asyncio
async def test_cancel_without_pending_timer_is_harmless():
    gate = DebounceGate(lambda q: None, delay_ms=10)
    gate.cancel()
    assert not gate.pending


@pytest.mark.asyncio
async def test_no_length_validation():
    fired = []
    gate = DebounceGate(fired.append, delay_ms=5)

    gate.submit("a")
    await asyncio.sleep(0.04)

    assert fired == ["a"]


def test_submit_needs_running_loop():
    gate = DebounceGate(lambda q: None)
    with pytest.raises(RuntimeError):
        gate.submit("abc")
