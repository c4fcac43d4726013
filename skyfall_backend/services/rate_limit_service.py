"""Rate limiting helpers.

Two flavours live here:

* fixed-window request counters (Firestore-first, in-memory fallback) used for
  checkout, resend and event ingestion;
* rolling timestamp throttles, where one Firestore doc per key keeps the list
  of recent action timestamps, pruned to the widest window on every check.
  Signup and referral abuse checks use these.
"""

import hashlib

from skyfall_backend.repositories import rate_limit_repo

HOUR_SECONDS = 3600
DAY_SECONDS = 86400


def window_counter_id(key, window_seconds, window_start):
    raw = f"{key}|{window_seconds}|{int(window_start)}".encode('utf-8')
    return hashlib.sha256(raw).hexdigest()


def check_rate_limit_firestore(
    key,
    limit,
    window_seconds,
    now_ts,
    *,
    firestore_enabled,
    db,
    firestore_module,
    counter_collection,
):
    if not firestore_enabled or db is None:
        return None
    try:
        window_start = int(now_ts // window_seconds) * int(window_seconds)
        retry_after = max(1, int((window_start + window_seconds) - now_ts))
        counter_id = window_counter_id(key, window_seconds, window_start)
        counter_ref = rate_limit_repo.counter_doc_ref(db, counter_collection, counter_id)
        transaction = db.transaction()

        @firestore_module.transactional
        def _txn(txn):
            snapshot = counter_ref.get(transaction=txn)
            count = 0
            if snapshot.exists:
                count = int((snapshot.to_dict() or {}).get('count', 0) or 0)
            if count >= limit:
                return False, retry_after
            txn.set(counter_ref, {
                'key': key,
                'count': count + 1,
                'window_start': window_start,
                'window_seconds': int(window_seconds),
                'updated_at': now_ts,
                'expires_at': window_start + (window_seconds * 3),
            }, merge=True)
            return True, 0

        return _txn(transaction)
    except Exception:
        return None


def check_rate_limit(
    key,
    limit,
    window_seconds,
    *,
    firestore_enabled,
    db,
    firestore_module,
    counter_collection,
    in_memory_events,
    in_memory_lock,
    time_module,
):
    now_ts = time_module.time()
    firestore_result = check_rate_limit_firestore(
        key,
        limit,
        window_seconds,
        now_ts,
        firestore_enabled=firestore_enabled,
        db=db,
        firestore_module=firestore_module,
        counter_collection=counter_collection,
    )
    if firestore_result is not None:
        return firestore_result

    with in_memory_lock:
        timestamps = in_memory_events.get(key, [])
        kept = prune_timestamps(timestamps, now_ts, window_seconds)
        if len(kept) >= limit:
            retry_after = max(1, int((kept[0] + window_seconds) - now_ts))
            in_memory_events[key] = kept
            return False, retry_after
        kept.append(now_ts)
        in_memory_events[key] = kept

    return True, 0


def prune_timestamps(timestamps, now_ts, max_age_seconds):
    """Drop malformed entries and anything ``max_age_seconds`` old or older. Result is sorted."""
    cutoff = now_ts - max_age_seconds
    kept = []
    for raw in timestamps or []:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            continue
        if value > cutoff:
            kept.append(value)
    kept.sort()
    return kept


def evaluate_windows(timestamps, now_ts, windows):
    """Check pruned timestamps against ``[(window_seconds, limit), ...]``.

    Returns ``(allowed, retry_after_seconds)``. A limit of 0 disables that window.
    """
    for window_seconds, limit in windows:
        if not limit:
            continue
        in_window = [ts for ts in timestamps if ts > now_ts - window_seconds]
        if len(in_window) >= limit:
            # The window frees a slot once enough of the oldest entries age out.
            release_ts = in_window[len(in_window) - limit]
            return False, max(1, int((release_ts + window_seconds) - now_ts))
    return True, 0


def count_in_window(timestamps, now_ts, window_seconds):
    return sum(1 for ts in timestamps if ts > now_ts - window_seconds)


def widest_window(windows):
    return max((int(window_seconds) for window_seconds, _limit in windows), default=DAY_SECONDS)


def check_timestamp_throttle(key, windows, *, db, collection_name, time_module, record=True):
    """Load, prune and evaluate the throttle doc for ``key``.

    When allowed and ``record`` is set the current timestamp is appended. The
    pruned list is written back whenever it changed. Returns
    ``(allowed, retry_after, timestamps)``.
    """
    now_ts = time_module.time()
    ref = rate_limit_repo.throttle_doc_ref(db, collection_name, key)
    snapshot = ref.get()
    stored = []
    if snapshot.exists:
        stored = (snapshot.to_dict() or {}).get('timestamps', []) or []
    kept = prune_timestamps(stored, now_ts, widest_window(windows))
    allowed, retry_after = evaluate_windows(kept, now_ts, windows)
    if allowed and record:
        kept.append(now_ts)
    if kept != stored:
        ref.set({'key': key, 'timestamps': kept, 'updatedAt': now_ts}, merge=True)
    return allowed, retry_after, kept


def record_timestamp(key, windows, *, db, collection_name, time_module):
    """Append the current timestamp to ``key``'s throttle doc without evaluating limits."""
    now_ts = time_module.time()
    ref = rate_limit_repo.throttle_doc_ref(db, collection_name, key)
    snapshot = ref.get()
    stored = (snapshot.to_dict() or {}).get('timestamps', []) if snapshot.exists else []
    kept = prune_timestamps(stored, now_ts, widest_window(windows))
    kept.append(now_ts)
    ref.set({'key': key, 'timestamps': kept, 'updatedAt': now_ts}, merge=True)
    return kept


def log_rate_limit_hit(limit_name, retry_after=0, *, db, allowed_names, logger, time_module):
    safe_name = str(limit_name or '').strip().lower()
    if safe_name not in allowed_names or db is None:
        return False
    try:
        retry_after_seconds = int(float(retry_after))
    except Exception:
        retry_after_seconds = 1
    retry_after_seconds = max(1, retry_after_seconds)
    try:
        rate_limit_repo.add_hit_log(db, {
            'limit_name': safe_name,
            'retry_after_seconds': retry_after_seconds,
            'created_at': time_module.time(),
        })
        return True
    except Exception as exc:
        if logger is not None:
            logger.info(f"⚠️ Could not store rate limit log ({safe_name}): {exc}")
        return False
