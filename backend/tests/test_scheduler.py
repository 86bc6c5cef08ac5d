import asyncio
from datetime import datetime, timezone

import pytest

from cryptoadvisor.services.evaluation import EvaluationScheduler, next_evaluation_delay


def at(hour, minute=0, second=0, day=1):
    return datetime(2024, 6, day, hour, minute, second, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "now, expected_seconds",
    [
        (at(0), 3 * 3600),
        (at(3), 4 * 3600),  # exactly on a slot: next one
        (at(2, 59, 30), 30),
        (at(12, 30), 2.5 * 3600),
        (at(23, 0, 1), 4 * 3600 - 1),  # rolls over to 03:00 tomorrow
    ],
)
def test_next_evaluation_delay(now, expected_seconds):
    assert next_evaluation_delay(now) == expected_seconds


def test_next_evaluation_delay_custom_hours():
    assert next_evaluation_delay(at(10), hours=[9]) == 23 * 3600


def test_next_evaluation_delay_requires_hours():
    with pytest.raises(ValueError):
        next_evaluation_delay(at(0), hours=[])


class CountingEvaluator:
    def __init__(self):
        self.runs = 0

    async def evaluate_all_pending(self):
        self.runs += 1


@pytest.mark.anyio
async def test_scheduler_start_and_stop():
    scheduler = EvaluationScheduler(evaluator=CountingEvaluator(), hours=[3])

    scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0)
    await scheduler.stop()

    assert not scheduler.running
