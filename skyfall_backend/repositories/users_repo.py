"""Firestore accessors for the users collection."""

from .query_utils import apply_where, first_doc

COLLECTION = 'users'


def doc_ref(db, uid):
    return db.collection(COLLECTION).document(uid)


def get_doc(db, uid):
    return doc_ref(db, uid).get()


def set_doc(db, uid, data, merge=False):
    return doc_ref(db, uid).set(data, merge=merge)


def update_doc(db, uid, updates):
    return doc_ref(db, uid).update(updates)


def find_by_stripe_customer_id(db, customer_id):
    if not customer_id:
        return None
    return first_doc(apply_where(db.collection(COLLECTION), 'stripeCustomerId', '==', customer_id))
