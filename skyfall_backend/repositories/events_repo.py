"""Firestore accessors for gameplay analytics events."""

COLLECTION = 'events'


def add_event(db, payload):
    """Add an event doc and return its generated id."""
    _update_time, ref = db.collection(COLLECTION).add(payload)
    return ref.id
