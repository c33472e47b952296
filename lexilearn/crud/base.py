import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from lexilearn.errors import MalformedInputError

ModelT = TypeVar("ModelT", bound=BaseModel)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Generate a collection-unique id such as lesson_3f9a1c2e"""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def validate(model: Type[ModelT], payload: Any) -> ModelT:
    """Parse a payload into `model`, turning validation failures into MalformedInputError"""
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid {model.__name__}: {e}") from e


def to_document(record: BaseModel) -> Dict[str, Any]:
    """JSON-shaped dict ready for the store"""
    return record.model_dump(mode="json")


def find_index(items: List[Dict[str, Any]], value: str, key: str = "id") -> Optional[int]:
    """Position of the first document whose `key` equals `value`"""
    for i, item in enumerate(items):
        if item.get(key) == value:
            return i
    return None
