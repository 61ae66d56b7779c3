from __future__ import annotations

import asyncio

import pytest

from pga.core.completion import Completion
from pga.core.parallel import perform_parallel
from pga.domain.models import Statement

STATEMENTS = [Statement(text=f"SELECT {n}") for n in (1, 2, 3)]


@pytest.mark.asyncio
async def test_parallel_positions_results_by_input_index(make_pool, callback_recorder) -> None:
    # Index 0 finishes last, index 2 first.
    pool = make_pool(delays={"SELECT 1": 0.06, "SELECT 2": 0.03, "SELECT 3": 0.0})
    recorder = callback_recorder()

    perform_parallel(pool, STATEMENTS, Completion(recorder, "parallel"))
    error, results = await recorder.wait()

    assert error is None
    assert pool.completion_order == ["SELECT 3", "SELECT 2", "SELECT 1"]
    assert [result.rows[0]["text"] for result in results] == ["SELECT 1", "SELECT 2", "SELECT 3"]


@pytest.mark.asyncio
async def test_parallel_issues_every_statement_before_any_completes(make_pool, callback_recorder) -> None:
    pool = make_pool(delays={s.text: 0.02 for s in STATEMENTS})
    recorder = callback_recorder()

    tasks = perform_parallel(pool, STATEMENTS, Completion(recorder, "parallel"))
    await asyncio.sleep(0)

    assert len(tasks) == len(STATEMENTS)
    assert [text for text, _ in pool.oneshot_calls] == [s.text for s in STATEMENTS]
    assert pool.completion_order == []
    await recorder.wait()


@pytest.mark.asyncio
async def test_parallel_failure_reports_partial_results_immediately(make_pool, callback_recorder) -> None:
    failure = RuntimeError("statement failed")
    pool = make_pool(
        failures={"SELECT 2": failure},
        delays={"SELECT 1": 0.0, "SELECT 2": 0.01, "SELECT 3": 0.2},
    )
    recorder = callback_recorder()

    perform_parallel(pool, STATEMENTS, Completion(recorder, "parallel"))
    error, results = await recorder.wait()

    assert error is failure
    assert results[0].rows[0]["text"] == "SELECT 1"
    assert results[1] is None
    assert results[2] is None
    # The slow statement is still in flight; it is not cancelled.
    assert "SELECT 3" not in pool.completion_order
    await asyncio.sleep(0.25)
    assert "SELECT 3" in pool.completion_order


@pytest.mark.asyncio
async def test_parallel_multiple_failures_settle_once(make_pool, callback_recorder) -> None:
    first = RuntimeError("first")
    second = RuntimeError("second")
    pool = make_pool(
        failures={"SELECT 1": first, "SELECT 3": second},
        delays={"SELECT 1": 0.01, "SELECT 3": 0.02},
    )
    recorder = callback_recorder()

    perform_parallel(pool, STATEMENTS, Completion(recorder, "parallel"))
    await recorder.wait()
    await asyncio.sleep(0.05)

    assert len(recorder.calls) == 1
    assert recorder.calls[0][0] is first


@pytest.mark.asyncio
async def test_parallel_empty_list_completes_with_empty_results(make_pool, callback_recorder) -> None:
    pool = make_pool()
    recorder = callback_recorder()

    tasks = perform_parallel(pool, [], Completion(recorder, "parallel"))

    assert tasks == []
    assert recorder.calls == [(None, [])]
    assert pool.oneshot_calls == []


@pytest.mark.asyncio
async def test_parallel_future_channel_rejects_without_partial_results(make_pool) -> None:
    failure = RuntimeError("statement failed")
    pool = make_pool(failures={"SELECT 3": failure})
    future = asyncio.get_running_loop().create_future()

    perform_parallel(pool, STATEMENTS, Completion.for_future(future, "parallel"))

    with pytest.raises(RuntimeError) as excinfo:
        await future
    assert excinfo.value is failure
