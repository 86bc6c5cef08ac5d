import pytest
from pydantic import ValidationError

from cryptoadvisor.core.config import Settings


def test_default_evaluation_hours():
    assert Settings().evaluation_hours_utc == [3, 7, 11, 15, 19, 23]


def test_evaluation_hours_are_sorted_and_deduplicated():
    assert Settings(evaluation_hours_utc=[19, 3, 19]).evaluation_hours_utc == [3, 19]


@pytest.mark.parametrize("hours", [[24], [-1, 3], []])
def test_evaluation_hours_out_of_range_rejected(hours):
    with pytest.raises(ValidationError):
        Settings(evaluation_hours_utc=hours)


def test_evaluation_hours_from_environment_are_checked(monkeypatch):
    monkeypatch.setenv("EVALUATION_HOURS_UTC", "[3, 25]")
    with pytest.raises(ValidationError):
        Settings()
