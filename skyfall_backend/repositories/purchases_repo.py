"""Firestore accessors for the purchases collection."""

from .query_utils import apply_where, first_doc

COLLECTION = 'purchases'


def doc_ref(db, purchase_id):
    return db.collection(COLLECTION).document(purchase_id)


def get_doc(db, purchase_id):
    return doc_ref(db, purchase_id).get()


def find_by_session_id(db, stripe_session_id):
    return first_doc(apply_where(db.collection(COLLECTION), 'stripe_session_id', '==', stripe_session_id))
