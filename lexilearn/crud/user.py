import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from lexilearn import collection_names as names
from lexilearn.crud.base import find_index, new_id, to_document, utcnow, validate
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import ProfileUpdate, User, UserCreate
from lexilearn.seed_data import SEEDED_USER_IDS
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)


def create_user(store: CollectionStore, user: Union[UserCreate, Dict[str, Any]]) -> User:
    """Create a new user; emails must be unique (case-insensitive)"""
    data = validate(UserCreate, user)
    now = utcnow()

    with store.locked(names.USERS):
        users = store.read(names.USERS)
        if data.role == "admin" and any(u["role"] == "admin" for u in users):
            raise MalformedInputError("An admin account already exists")
        if any(u["email"].lower() == data.email.lower() for u in users):
            raise MalformedInputError(f"Email {data.email} is already registered")
        user_id = data.id or new_id(data.role)
        if find_index(users, user_id) is not None:
            raise MalformedInputError(f"User id {user_id} is already taken")

        record = User(**data.model_dump(exclude={"id"}), id=user_id, joined_at=now, last_active_at=now)
        users.append(to_document(record))
        store.write(names.USERS, users)

    logger.info("Created %s %s", record.role, record.id)
    return record


def get_user(store: CollectionStore, user_id: str) -> Optional[User]:
    """Get user by ID"""
    users = store.read(names.USERS)
    i = find_index(users, user_id)
    return User(**users[i]) if i is not None else None


def list_users(store: CollectionStore, role: Optional[str] = None) -> List[User]:
    """All users, optionally limited to one role"""
    return [User(**u) for u in store.read(names.USERS) if role is None or u["role"] == role]


def update_profile(store: CollectionStore, user_id: str, user_data: Dict[str, Any]) -> Optional[User]:
    """Update profile fields; role and id cannot be changed here"""
    updates = validate(ProfileUpdate, user_data).model_dump(exclude_unset=True)

    with store.locked(names.USERS):
        users = store.read(names.USERS)
        i = find_index(users, user_id)
        if i is None:
            return None
        if "email" in updates and any(
            u["email"].lower() == updates["email"].lower() and u["id"] != user_id for u in users
        ):
            raise MalformedInputError(f"Email {updates['email']} is already registered")
        users[i].update(updates)
        record = validate(User, users[i])
        users[i] = to_document(record)
        store.write(names.USERS, users)
    return record


def change_role(store: CollectionStore, user_id: str, role: str) -> User:
    """Reassign a user's role (admin operation)"""
    if user_id in SEEDED_USER_IDS:
        raise MalformedInputError(f"Role of seeded user {user_id} cannot be changed")

    with store.locked(names.USERS):
        users = store.read(names.USERS)
        i = find_index(users, user_id)
        if i is None:
            raise NotFoundError(names.USERS, user_id)
        if role == "admin" or users[i]["role"] == "admin":
            raise MalformedInputError("Exactly one admin account must exist")
        users[i]["role"] = role
        record = validate(User, users[i])
        users[i] = to_document(record)
        store.write(names.USERS, users)
    return record


def touch_last_active(store: CollectionStore, user_id: str, when: Optional[datetime] = None) -> Optional[User]:
    """Record activity for the user"""
    with store.locked(names.USERS):
        users = store.read(names.USERS)
        i = find_index(users, user_id)
        if i is None:
            return None
        users[i]["last_active_at"] = (when or utcnow()).isoformat()
        store.write(names.USERS, users)
        return User(**users[i])


def delete_user(store: CollectionStore, user_id: str) -> bool:
    """
    Remove a user together with every record that refers to them.

    Returns:
        False when no such user exists
    """
    with store.locked(names.USERS):
        users = store.read(names.USERS)
        i = find_index(users, user_id)
        if i is None:
            return False
        if users[i]["role"] == "admin":
            raise MalformedInputError("The admin account cannot be deleted")
        del users[i]
        store.write(names.USERS, users)

    def drop_by(key):
        def mutate(docs):
            return [d for d in docs if d.get(key) != user_id]
        return mutate

    def drop_progress(progress):
        progress.pop(user_id, None)

    def unassign(modules):
        for module in modules:
            if user_id in module.get("assigned_teacher_ids", []):
                module["assigned_teacher_ids"].remove(user_id)

    # Collections that were never written stay absent so seeding still sees them as missing
    for name, mutate in [
        (names.SUBSCRIPTIONS, drop_by("student_id")),
        (names.TEACHER_PAYMENTS, drop_by("teacher_id")),
        (names.STUDENT_PROGRESS, drop_progress),
        (names.MODULES, unassign),
        (names.VOICE_SESSIONS, drop_by("student_id")),
        (names.TEXT_CONVERSATIONS, drop_by("student_id")),
    ]:
        if store.exists(name):
            store.update(name, mutate)

    logger.info("Deleted user %s and associated records", user_id)
    return True
