from lexilearn.models.collection import CollectionDocument

__all__ = [
    "CollectionDocument"
]
