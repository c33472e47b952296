"""Errors raised by the data layer.

Storage failures are not wrapped: SQLAlchemy (or JSON serialization) errors
reach the caller unchanged.
"""


class LexiLearnError(Exception):
    """Base class for data layer errors"""


class NotFoundError(LexiLearnError):
    """An operation addressed an id absent from its collection"""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{record_id} not found in {collection}")


class MalformedInputError(LexiLearnError):
    """A caller supplied a document that is missing fields or breaks an invariant"""
