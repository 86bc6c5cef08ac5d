import pytest

from conftest import NOW, FakeOracle, RecordingStore, make_recommendation
from cryptoadvisor.schemas.recommendation import RecommendationStatus
from cryptoadvisor.services.evaluation import RecommendationEvaluator

pytestmark = pytest.mark.anyio


def _evaluator(store, oracle):
    return RecommendationEvaluator(
        store=store, oracle=oracle, pause_seconds=0, clock=lambda: NOW
    )


async def test_no_price_means_no_write():
    store = RecordingStore([make_recommendation(symbol="DOGE")])
    oracle = FakeOracle({})

    summary = await _evaluator(store, oracle).evaluate_all_pending()

    assert store.updates == []
    assert store.records["rec-1"].status == RecommendationStatus.PENDING
    assert summary.skipped == 1
    assert summary.transitioned == 0


async def test_transition_writes_status_and_timestamp_once():
    store = RecordingStore([make_recommendation("buy", target=110, stop=90)])
    oracle = FakeOracle({"BTC": 111.0})

    summary = await _evaluator(store, oracle).evaluate_all_pending()

    assert store.updates == [
        ("rec-1", {"status": RecommendationStatus.ACCURATE, "evaluation_timestamp": NOW})
    ]
    rec = store.records["rec-1"]
    assert rec.status == RecommendationStatus.ACCURATE
    assert rec.evaluation_timestamp == NOW
    assert summary.transitioned == 1


async def test_between_levels_no_write():
    store = RecordingStore([make_recommendation("buy", target=110, stop=90)])

    await _evaluator(store, FakeOracle({"BTC": 100.0})).evaluate_all_pending()

    assert store.updates == []


async def test_expired_record_skips_oracle():
    store = RecordingStore([make_recommendation(age_days=31)])
    oracle = FakeOracle({"BTC": 100.0})

    await _evaluator(store, oracle).evaluate_all_pending()

    assert oracle.calls == []
    assert store.records["rec-1"].status == RecommendationStatus.EXPIRED


async def test_expired_without_price_still_expires():
    store = RecordingStore([make_recommendation(symbol="NOPE", age_days=40)])

    summary = await _evaluator(store, FakeOracle({})).evaluate_all_pending()

    assert store.records["rec-1"].status == RecommendationStatus.EXPIRED
    assert summary.skipped == 0


async def test_write_failure_continues_with_next_record():
    store = RecordingStore(
        [
            make_recommendation("buy", target=110, stop=90, rec_id="a"),
            make_recommendation("sell", target=80, stop=120, rec_id="b", symbol="ETH"),
        ],
        fail_update_ids={"a"},
    )
    oracle = FakeOracle({"BTC": 120.0, "ETH": 75.0})

    summary = await _evaluator(store, oracle).evaluate_all_pending()

    assert store.records["a"].status == RecommendationStatus.PENDING
    assert store.records["b"].status == RecommendationStatus.ACCURATE
    assert summary.failed == 1
    assert summary.transitioned == 1
    assert summary.evaluated == 2


async def test_read_failure_ends_pass_quietly():
    store = RecordingStore([make_recommendation()], fail_select=True)
    oracle = FakeOracle({"BTC": 200.0})

    summary = await _evaluator(store, oracle).evaluate_all_pending()

    assert summary.evaluated == 0
    assert oracle.calls == []


async def test_only_pending_records_are_evaluated():
    store = RecordingStore(
        [
            make_recommendation(rec_id="done", status=RecommendationStatus.INACCURATE),
            make_recommendation(rec_id="open"),
        ]
    )
    oracle = FakeOracle({"BTC": 100.0})

    summary = await _evaluator(store, oracle).evaluate_all_pending()

    assert summary.evaluated == 1
    assert oracle.calls == ["BTC"]


async def test_second_pass_does_not_reevaluate():
    store = RecordingStore([make_recommendation("buy", target=110, stop=90)])
    oracle = FakeOracle({"BTC": 50.0})
    evaluator = _evaluator(store, oracle)

    await evaluator.evaluate_all_pending()
    oracle.prices["BTC"] = 200.0
    second = await evaluator.evaluate_all_pending()

    assert store.records["rec-1"].status == RecommendationStatus.INACCURATE
    assert second.evaluated == 0
    assert len(store.updates) == 1


async def test_record_graded_elsewhere_counts_as_failed():
    class RacingStore(RecordingStore):
        async def select_by_status(self, status):
            pending = await super().select_by_status(status)
            # another pass grades everything right after this read
            for rec in pending:
                self.records[rec.id] = rec.model_copy(
                    update={"status": RecommendationStatus.INACCURATE}
                )
            return pending

    store = RacingStore([make_recommendation("buy", target=110, stop=90)])

    summary = await _evaluator(store, FakeOracle({"BTC": 111.0})).evaluate_all_pending()

    assert store.records["rec-1"].status == RecommendationStatus.INACCURATE
    assert summary.transitioned == 0
    assert summary.failed == 1


async def test_unknown_id_on_write_counts_as_failed():
    class VanishingStore(RecordingStore):
        async def update(self, recommendation_id, fields):
            self.records.pop(recommendation_id)
            return await super().update(recommendation_id, fields)

    store = VanishingStore([make_recommendation("buy", target=110, stop=90)])

    summary = await _evaluator(store, FakeOracle({"BTC": 111.0})).evaluate_all_pending()

    assert summary.evaluated == 1
    assert summary.transitioned == 0
    assert summary.failed == 1
