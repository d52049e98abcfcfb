import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1 import FieldFilter

from ..config import settings
from ..errors import NotFound
from .document_store import CreateOp, DocumentStore, UpdateOp, check_expected

logger = logging.getLogger(__name__)


def _init_firestore():
    """Initialize Firebase Admin SDK (only once) and return a Firestore client"""
    if not firebase_admin._apps:
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        cred_path = settings.GOOGLE_APPLICATION_CREDENTIALS

        if cred_path and os.path.exists(cred_path):
            logger.info("Firebase init: using service account file %s", cred_path)
            cred = credentials.Certificate(cred_path)
        else:
            logger.info("Firebase init: using application default credentials")
            cred = credentials.ApplicationDefault()
        firebase_admin.initialize_app(cred, options)

    db = firestore.client(database_id=settings.FIREBASE_DATABASE_ID)
    logger.info("Connected to Firestore project %s, database %s", db.project, settings.FIREBASE_DATABASE_ID)
    return db


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by Cloud Firestore

    Conditional updates and commits run inside Firestore transactions, so
    the status check and the write see the same document version.
    """

    supports_transactions = True

    def __init__(self, db=None):
        self.db = db if db is not None else _init_firestore()

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        doc = self.db.collection(collection).document(doc_id).get()
        if not doc.exists:
            raise NotFound(collection, doc_id)
        return self._to_dict(doc)

    async def query(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        query = self.db.collection(collection)
        for name, value in filters.items():
            query = query.where(filter=FieldFilter(name, "==", value))
        return [self._to_dict(doc) for doc in query.stream()]

    async def create(self, collection: str, record: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        data = {k: v for k, v in record.items() if k != "id"}
        data["updated_at"] = firestore.SERVER_TIMESTAMP
        doc_ref = self.db.collection(collection).document(doc_id) if doc_id else self.db.collection(collection).document()
        doc_ref.create(data)
        return doc_ref.id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self.commit([], [UpdateOp(collection, doc_id, fields, dict(expected or {}))])

    async def commit(self, creates: Sequence[CreateOp], updates: Sequence[UpdateOp]) -> List[str]:
        create_refs = [
            self.db.collection(op.collection).document(op.doc_id)
            if op.doc_id else self.db.collection(op.collection).document()
            for op in creates
        ]
        update_refs = [self.db.collection(op.collection).document(op.doc_id) for op in updates]

        @firestore.transactional
        def _apply(transaction):
            # Firestore requires every read before the first write
            for op, ref in zip(updates, update_refs):
                snapshot = ref.get(transaction=transaction)
                if not snapshot.exists:
                    raise NotFound(op.collection, op.doc_id)
                check_expected(op.collection, op.doc_id, snapshot.to_dict() or {}, op.expected)

            for op, ref in zip(creates, create_refs):
                data = {k: v for k, v in op.record.items() if k != "id"}
                data["updated_at"] = firestore.SERVER_TIMESTAMP
                transaction.create(ref, data)
            for op, ref in zip(updates, update_refs):
                transaction.update(ref, {**op.fields, "updated_at": firestore.SERVER_TIMESTAMP})

        _apply(self.db.transaction())
        return [ref.id for ref in create_refs]
