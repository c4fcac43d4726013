"""Firestore accessors for rate limit counters and throttle timestamp docs."""

COUNTER_COLLECTION = 'rate_limit_counters'
SIGNUP_THROTTLE_COLLECTION = 'signup_rate_limits'
REFERRAL_THROTTLE_COLLECTION = 'referral_rate_limits'
HIT_LOG_COLLECTION = 'rate_limit_logs'


def counter_doc_ref(db, collection_name, counter_id):
    return db.collection(collection_name).document(counter_id)


def throttle_doc_ref(db, collection_name, key):
    return db.collection(collection_name).document(key)


def add_hit_log(db, payload):
    return db.collection(HIT_LOG_COLLECTION).add(payload)
