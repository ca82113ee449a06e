"""
Tests for bounded concurrent execution of per-post work.
"""

import threading
import time

import pytest

from stereocrawl.core.concurrency import run_bounded, ItemTimeoutError
from stereocrawl.core.exceptions import ErrorCode


class TestRunBounded:

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        # Earlier items finish last
        def work(item):
            time.sleep(0.01 * (5 - item))
            return item * 10

        outcomes = await run_bounded([1, 2, 3, 4], work, max_workers=4)

        assert [outcome.item for outcome in outcomes] == [1, 2, 3, 4]
        assert [outcome.result for outcome in outcomes] == [10, 20, 30, 40]
        assert all(outcome.ok for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        def work(item):
            if item == 3:
                raise RuntimeError("post 3 broke")
            return item

        outcomes = await run_bounded([1, 2, 3, 4, 5], work, max_workers=2)

        assert [outcome.ok for outcome in outcomes] == [True, True, False, True, True]
        assert str(outcomes[2].error) == "post 3 broke"

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        lock = threading.Lock()
        state = {'active': 0, 'peak': 0}

        def work(item):
            with lock:
                state['active'] += 1
                state['peak'] = max(state['peak'], state['active'])
            time.sleep(0.02)
            with lock:
                state['active'] -= 1
            return item

        await run_bounded(list(range(8)), work, max_workers=2)

        assert state['peak'] <= 2

    @pytest.mark.asyncio
    async def test_hung_item_times_out_without_blocking_others(self):
        never_set = threading.Event()

        def work(item):
            if item == "hung":
                never_set.wait(3)
            return item

        started = time.monotonic()
        outcomes = await run_bounded(["a", "hung", "b"], work, max_workers=2, timeout=0.1)

        assert time.monotonic() - started < 1.5
        assert [outcome.ok for outcome in outcomes] == [True, False, True]
        assert isinstance(outcomes[1].error, ItemTimeoutError)
        assert outcomes[1].error.error_code == ErrorCode.OPERATION_TIMEOUT

    @pytest.mark.asyncio
    async def test_hung_item_does_not_starve_sequential_batch(self):
        never_set = threading.Event()

        def work(item):
            if item == 1:
                never_set.wait(3)
            return item

        started = time.monotonic()
        outcomes = await run_bounded([1, 2, 3], work, max_workers=1, timeout=0.2)

        assert time.monotonic() - started < 1.5
        assert [outcome.ok for outcome in outcomes] == [False, True, True]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await run_bounded([], lambda item: item) == []

    @pytest.mark.asyncio
    async def test_invalid_pool_size(self):
        with pytest.raises(ValueError):
            await run_bounded([1], lambda item: item, max_workers=0)
