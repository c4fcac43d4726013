"""Firestore accessors for email verification tokens (doc id == token)."""

from .query_utils import apply_where

COLLECTION = 'email_verifications'


def doc_ref(db, token):
    return db.collection(COLLECTION).document(token)


def get_doc(db, token):
    return doc_ref(db, token).get()


def set_doc(db, token, data):
    return doc_ref(db, token).set(data)


def update_doc(db, token, updates):
    return doc_ref(db, token).update(updates)


def list_pending_by_uid(db, uid, limit=20):
    query = apply_where(apply_where(db.collection(COLLECTION), 'uid', '==', uid), 'verified', '==', False)
    return list(query.limit(limit).stream())
