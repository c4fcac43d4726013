import threading

from skyfall_backend.services import rate_limit_service
from tests.conftest import FakeClock
from tests.fakes import FakeFirestore

WINDOWS = [(rate_limit_service.HOUR_SECONDS, 3), (rate_limit_service.DAY_SECONDS, 5)]


def test_prune_timestamps_drops_old_and_malformed_entries():
    now_ts = 10_000.0

    kept = rate_limit_service.prune_timestamps([now_ts - 50, "bad", None, now_ts - 5_000, now_ts - 10], now_ts, 3600)

    assert kept == [now_ts - 50, now_ts - 10]


def test_evaluate_windows_reports_when_oldest_entry_ages_out():
    now_ts = 100_000.0
    timestamps = [now_ts - 1_000, now_ts - 500, now_ts - 100]

    allowed, retry_after = rate_limit_service.evaluate_windows(timestamps, now_ts, WINDOWS)

    assert allowed is False
    assert retry_after == 2_600


def test_evaluate_windows_zero_limit_disables_window():
    allowed, retry_after = rate_limit_service.evaluate_windows([1.0, 2.0], 3.0, [(3600, 0)])

    assert (allowed, retry_after) == (True, 0)


def test_check_timestamp_throttle_without_record_leaves_doc_untouched():
    db = FakeFirestore()
    clock = FakeClock(50_000)

    allowed, retry_after, kept = rate_limit_service.check_timestamp_throttle(
        "referrer-1",
        WINDOWS,
        db=db,
        collection_name="referral_rate_limits",
        time_module=clock,
        record=False,
    )

    assert (allowed, retry_after, kept) == (True, 0, [])
    assert db.doc("referral_rate_limits", "referrer-1") is None


def test_check_timestamp_throttle_rewrites_pruned_list():
    db = FakeFirestore()
    clock = FakeClock(200_000)
    db.seed("signup_rate_limits", "1.2.3.4", {"timestamps": [clock.now - 90_000, clock.now - 10]})

    allowed, _retry_after, kept = rate_limit_service.check_timestamp_throttle(
        "1.2.3.4",
        WINDOWS,
        db=db,
        collection_name="signup_rate_limits",
        time_module=clock,
    )

    assert allowed is True
    assert kept == [clock.now - 10, clock.now]
    assert db.doc("signup_rate_limits", "1.2.3.4")["timestamps"] == [clock.now - 10, clock.now]


def test_in_memory_rate_limit_when_firestore_disabled():
    clock = FakeClock(1_000)
    events = {}
    kwargs = dict(
        firestore_enabled=False,
        db=None,
        firestore_module=None,
        counter_collection="rate_limit_counters",
        in_memory_events=events,
        in_memory_lock=threading.Lock(),
        time_module=clock,
    )

    results = [rate_limit_service.check_rate_limit("checkout:ip", 2, 60, **kwargs) for _ in range(3)]

    assert results == [(True, 0), (True, 0), (False, 60)]
    clock.advance(61)
    assert rate_limit_service.check_rate_limit("checkout:ip", 2, 60, **kwargs) == (True, 0)


def test_log_rate_limit_hit_only_for_known_names():
    db = FakeFirestore()
    clock = FakeClock(5_000)

    stored = rate_limit_service.log_rate_limit_hit("signup", 12.7, db=db, allowed_names={"signup"}, logger=None, time_module=clock)
    skipped = rate_limit_service.log_rate_limit_hit("other", 5, db=db, allowed_names={"signup"}, logger=None, time_module=clock)

    assert (stored, skipped) == (True, False)
    logs = list(db.collection("rate_limit_logs").docs.values())
    assert logs == [{"limit_name": "signup", "retry_after_seconds": 12, "created_at": 5_000.0}]


def test_entry_exactly_one_window_old_is_neither_kept_nor_counted():
    now_ts = 90_000.0
    timestamps = [now_ts - 3600, now_ts - 10]

    kept = rate_limit_service.prune_timestamps(timestamps, now_ts, 3600)

    assert kept == [now_ts - 10]
    assert rate_limit_service.count_in_window(timestamps, now_ts, 3600) == len(kept)
