from typing import Dict, List, Optional

from lexilearn import collection_names as names
from lexilearn.schemas import User
from lexilearn.store import CollectionStore

ANY = "all"


def _active(filters: Dict[str, str], key: str) -> Optional[str]:
    """Filter value, or None when the filter is missing, empty or "all" """
    value = filters.get(key)
    if not value or value == ANY:
        return None
    return value


def search_users(store: CollectionStore, term: str = "", filters: Optional[Dict[str, str]] = None) -> List[User]:
    """
    Find non-admin users.

    Args:
        term: Case-insensitive substring matched against display name or email
        filters: Optional `role`, `level` and `module` constraints, combined
            with AND. `level` only matches students (by their progress level),
            `module` only matches teachers assigned to that module.
    """
    filters = filters or {}
    users = [u for u in store.read(names.USERS) if u["role"] != "admin"]

    if term:
        needle = term.lower()
        users = [
            u for u in users
            if needle in u["display_name"].lower() or needle in u["email"].lower()
        ]

    role = _active(filters, "role")
    if role:
        users = [u for u in users if u["role"] == role]

    level = _active(filters, "level")
    if level:
        progress = store.read(names.STUDENT_PROGRESS)
        users = [
            u for u in users
            if u["role"] == "student" and progress.get(u["id"], {}).get("level") == level
        ]

    module_id = _active(filters, "module")
    if module_id:
        module = next((m for m in store.read(names.MODULES) if m["id"] == module_id), None)
        assigned = set(module.get("assigned_teacher_ids", [])) if module else set()
        users = [u for u in users if u["role"] == "teacher" and u["id"] in assigned]

    return [User(**u) for u in users]
