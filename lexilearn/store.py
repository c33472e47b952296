import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lexilearn.collection_names import empty_document
from lexilearn.database import SessionLocal
from lexilearn.models import CollectionDocument

logger = logging.getLogger(__name__)


class CollectionStore:
    """
    Namespaced key -> document persistence.

    Each collection is one JSON document (a list or a map) that is always
    read and written as a whole. Reads hand out deep copies, so callers may
    mutate what they get back and persist it with `write`.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _session(self):
        db: Session = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def read(self, name: str, default: Any = None) -> Any:
        """
        Return the persisted document for `name`.

        Args:
            name: Collection name
            default: Value returned when the name has never been written.
                Falls back to an empty list (or map, for map collections).
        """
        with self._session() as db:
            row = db.get(CollectionDocument, name)
            if row is None:
                return copy.deepcopy(default) if default is not None else empty_document(name)
            return copy.deepcopy(row.document)

    def exists(self, name: str) -> bool:
        """Check whether `name` has ever been written"""
        with self._session() as db:
            return db.get(CollectionDocument, name) is not None

    def write(self, name: str, document: Any) -> None:
        """Replace the whole document stored under `name`"""
        with self._session() as db:
            try:
                row = db.get(CollectionDocument, name)
                if row is None:
                    db.add(CollectionDocument(name=name, document=copy.deepcopy(document)))
                else:
                    row.document = copy.deepcopy(document)
                db.commit()
            except (SQLAlchemyError, TypeError, ValueError):
                db.rollback()
                logger.error("Write to collection %s failed", name, exc_info=True)
                raise

    def delete(self, name: str) -> bool:
        """Drop a collection entirely; returns False if it was never written"""
        with self._session() as db:
            try:
                row = db.get(CollectionDocument, name)
                if row is None:
                    return False
                db.delete(row)
                db.commit()
                return True
            except SQLAlchemyError:
                db.rollback()
                logger.error("Delete of collection %s failed", name, exc_info=True)
                raise

    @contextmanager
    def locked(self, name: str):
        """Serialize read-modify-write cycles on one collection"""
        with self._locks_guard:
            lock = self._locks.setdefault(name, threading.RLock())
        with lock:
            yield

    def update(self, name: str, mutate: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Read a collection, apply `mutate` and write the result back.

        `mutate` receives the current document and may either change it in
        place (returning None) or return a replacement. Nothing is written if
        `mutate` raises.

        Returns:
            The document as written
        """
        with self.locked(name):
            document = self.read(name, default)
            result = mutate(document)
            if result is not None:
                document = result
            self.write(name, document)
            return document

    def names(self) -> list:
        """List every collection that has been written"""
        with self._session() as db:
            return sorted(row.name for row in db.query(CollectionDocument.name).all())


_default_store: Optional[CollectionStore] = None


def get_store() -> CollectionStore:
    """Factory returning the store bound to the configured database"""
    global _default_store
    if _default_store is None:
        _default_store = CollectionStore()
    return _default_store
