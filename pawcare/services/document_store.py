"""
Document store contract used by the scheduling engine

The engine only needs four primitives from its backing store (get, equality
query, create, conditional update) plus an atomic multi-document commit for
the client reschedule flow. `InMemoryDocumentStore` implements them for local
development and tests; `FirestoreDocumentStore` in firebase_service.py is the
production backend.
"""
import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..errors import Conflict, NotFound

logger = logging.getLogger(__name__)

USERS = "users"
APPOINTMENTS = "appointments"
NOTIFICATIONS = "notifications"


@dataclass
class CreateOp:
    """Create a document as part of a commit"""
    collection: str
    record: Dict[str, Any]
    doc_id: Optional[str] = None


@dataclass
class UpdateOp:
    """Conditionally update a document as part of a commit"""
    collection: str
    doc_id: str
    fields: Dict[str, Any]
    expected: Dict[str, Any] = field(default_factory=dict)


def check_expected(
    collection: str,
    doc_id: str,
    current: Mapping[str, Any],
    expected: Optional[Mapping[str, Any]],
) -> None:
    """Raise Conflict unless every expected field holds on the current document"""
    if not expected:
        return
    mismatched = {
        name: current.get(name)
        for name, value in expected.items()
        if current.get(name) != value
    }
    if mismatched:
        raise Conflict(
            f"{collection}/{doc_id} changed concurrently",
            expected={name: expected[name] for name in mismatched},
            actual=mismatched,
        )


class DocumentStore(ABC):
    """Abstract async document store"""

    # False tells callers to write sequentially instead of using commit()
    supports_transactions: bool = True

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """
        Get a document by ID

        Returns:
            Document data with its ID under "id"

        Raises:
            NotFound: if the document does not exist
        """

    @abstractmethod
    async def query(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        """All documents whose fields equal the given filters, in store order"""

    @abstractmethod
    async def create(self, collection: str, record: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """Create a document, return its ID"""

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Atomically update fields if the document still matches `expected`

        Raises:
            NotFound: if the document does not exist
            Conflict: if any expected field differs
        """

    @abstractmethod
    async def commit(self, creates: Sequence[CreateOp], updates: Sequence[UpdateOp]) -> List[str]:
        """
        Apply creates and conditional updates together

        Returns:
            IDs of the created documents, in the order given
        """


class InMemoryDocumentStore(DocumentStore):
    """Process-local store for development and tests

    With transactional=False the store reports no multi-document
    transactions, so callers fall back to sequential writes as they would
    on such a backend.
    """

    def __init__(self, transactional: bool = True):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self.supports_transactions = transactional

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex[:20]

    def seed(self, collection: str, doc_id: str, record: Dict[str, Any]) -> None:
        """Load a fixture document synchronously, replacing any existing one"""
        data = copy.deepcopy(record)
        data.pop("id", None)
        self._collection(collection)[doc_id] = data

    def documents(self, collection: str) -> List[Dict[str, Any]]:
        """Snapshot of a collection in insertion order, for inspection"""
        return [dict(copy.deepcopy(document), id=doc_id) for doc_id, document in self._collection(collection).items()]

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        document = self._collection(collection).get(doc_id)
        if document is None:
            raise NotFound(collection, doc_id)
        data = copy.deepcopy(document)
        data["id"] = doc_id
        return data

    async def query(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        results = []
        for doc_id, document in self._collection(collection).items():
            if all(document.get(name) == value for name, value in filters.items()):
                data = copy.deepcopy(document)
                data["id"] = doc_id
                results.append(data)
        return results

    async def create(self, collection: str, record: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        async with self._lock:
            return self._create(collection, record, doc_id)

    def _create(self, collection: str, record: Dict[str, Any], doc_id: Optional[str]) -> str:
        documents = self._collection(collection)
        doc_id = doc_id or self._new_id()
        if doc_id in documents:
            raise Conflict(f"{collection}/{doc_id} already exists")
        data = copy.deepcopy(record)
        data.pop("id", None)
        documents[doc_id] = data
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        async with self._lock:
            self._check(collection, doc_id, expected)
            self._apply(collection, doc_id, fields)

    def _check(self, collection: str, doc_id: str, expected: Optional[Mapping[str, Any]]) -> None:
        document = self._collection(collection).get(doc_id)
        if document is None:
            raise NotFound(collection, doc_id)
        check_expected(collection, doc_id, document, expected)

    def _apply(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._collection(collection)[doc_id].update(copy.deepcopy(fields))

    async def commit(self, creates: Sequence[CreateOp], updates: Sequence[UpdateOp]) -> List[str]:
        async with self._lock:
            # Validate everything first so a failure leaves no trace
            for op in updates:
                self._check(op.collection, op.doc_id, op.expected)
            for op in creates:
                if op.doc_id and op.doc_id in self._collection(op.collection):
                    raise Conflict(f"{op.collection}/{op.doc_id} already exists")

            ids = [self._create(op.collection, op.record, op.doc_id) for op in creates]
            for op in updates:
                self._apply(op.collection, op.doc_id, op.fields)
            return ids
