import asyncio

import pytest

from ad_creator.exceptions import JobCancelledError, JobFailedError, JobTimeoutError, ProviderError
from ad_creator.polling import JobPoller, JobStatus, JobUpdate


def make_check(*updates):
    """Status check that replays *updates* (the last one repeats) and counts calls."""
    calls = []

    async def check(job_id):
        calls.append(job_id)
        item = updates[min(len(calls), len(updates)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    return check, calls


RUNNING = JobUpdate(status=JobStatus.RUNNING)


@pytest.mark.parametrize("max_attempts", [1, 3, 30])
async def test_always_running_times_out_after_exactly_n_checks(fake_sleep, max_attempts):
    poller = JobPoller(max_attempts=max_attempts, poll_interval=2.0, sleep=fake_sleep)
    check, calls = make_check(RUNNING)

    with pytest.raises(JobTimeoutError) as exc_info:
        await poller.run("job-1", check)

    assert len(calls) == max_attempts
    assert exc_info.value.attempts == max_attempts
    # no wait after the final check
    assert fake_sleep.sleeps == [2.0] * (max_attempts - 1)


async def test_timeout_is_distinct_from_failure(fake_sleep):
    poller = JobPoller(max_attempts=2, poll_interval=1, sleep=fake_sleep)
    check, _ = make_check(RUNNING)

    with pytest.raises(JobTimeoutError) as exc_info:
        await poller.run("job-1", check)

    assert not isinstance(exc_info.value, JobFailedError)
    assert isinstance(exc_info.value, ProviderError)


async def test_success_returns_update(fake_sleep):
    poller = JobPoller(max_attempts=5, poll_interval=2, sleep=fake_sleep)
    done = JobUpdate(status=JobStatus.SUCCEEDED, asset_urls=["https://cdn/x.png"])
    check, calls = make_check(RUNNING, RUNNING, done)

    update = await poller.run("job-1", check)

    assert update.primary_url == "https://cdn/x.png"
    assert len(calls) == 3
    assert fake_sleep.sleeps == [2, 2]


async def test_success_without_assets_is_a_failure(fake_sleep):
    poller = JobPoller(max_attempts=5, poll_interval=2, sleep=fake_sleep)
    check, _ = make_check(JobUpdate(status=JobStatus.SUCCEEDED, asset_urls=[]))

    with pytest.raises(JobFailedError):
        await poller.run("job-1", check)


async def test_failed_status_carries_reason(fake_sleep):
    poller = JobPoller(max_attempts=5, poll_interval=2, sleep=fake_sleep)
    check, calls = make_check(JobUpdate(status=JobStatus.FAILED, failure_reason="content moderation"))

    with pytest.raises(JobFailedError, match="content moderation") as exc_info:
        await poller.run("job-9", check)

    assert exc_info.value.job_id == "job-9"
    assert len(calls) == 1


async def test_check_errors_are_tolerated_within_budget(fake_sleep):
    poller = JobPoller(max_attempts=5, poll_interval=2, sleep=fake_sleep)
    done = JobUpdate(status=JobStatus.SUCCEEDED, asset_urls=["https://cdn/v.mp4"])
    check, calls = make_check(ConnectionError("blip"), RuntimeError("502"), done)

    update = await poller.run("job-1", check)

    assert update.asset_urls == ["https://cdn/v.mp4"]
    assert len(calls) == 3


async def test_check_errors_count_against_budget(fake_sleep):
    poller = JobPoller(max_attempts=3, poll_interval=2, sleep=fake_sleep)
    check, calls = make_check(ConnectionError("down"))

    with pytest.raises(JobTimeoutError):
        await poller.run("job-1", check)

    assert len(calls) == 3


async def test_progress_callback_sees_each_attempt(fake_sleep):
    poller = JobPoller(max_attempts=3, poll_interval=1, sleep=fake_sleep)
    check, _ = make_check(RUNNING)
    seen = []

    with pytest.raises(JobTimeoutError):
        await poller.run("job-1", check, on_progress=lambda h: seen.append((h.attempts, round(h.progress, 2))))

    assert seen == [(1, 0.33), (2, 0.67), (3, 1.0)]


async def test_cancel_event_stops_polling(fake_sleep):
    poller = JobPoller(max_attempts=10, poll_interval=1, sleep=fake_sleep)
    cancel = asyncio.Event()
    check, calls = make_check(RUNNING)

    def on_progress(handle):
        if handle.attempts == 2:
            cancel.set()

    with pytest.raises(JobCancelledError):
        await poller.run("job-1", check, on_progress=on_progress, cancel_event=cancel)

    assert len(calls) == 2


async def test_submit_errors_propagate_without_polling(fake_sleep):
    poller = JobPoller(max_attempts=3, poll_interval=1, sleep=fake_sleep)
    check, calls = make_check(RUNNING)

    async def submit():
        raise ProviderError("rejected", provider="runway")

    with pytest.raises(ProviderError, match="rejected"):
        await poller.submit_and_poll(submit, check)

    assert calls == []


def test_poller_requires_positive_budget():
    with pytest.raises(ValueError):
        JobPoller(max_attempts=0, poll_interval=1)
