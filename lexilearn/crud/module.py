import logging
from typing import Any, Callable, Dict, List, Optional, Union

from lexilearn import collection_names as names
from lexilearn.crud.base import find_index, new_id, to_document, utcnow, validate
from lexilearn.crud.progress import refresh_module_progress, remove_course_progress
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import Lesson, Module, Resource
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)

MODULE_FIELDS = {"title", "description", "level", "status"}
LESSON_FIELDS = {"title", "duration_minutes", "media_ref"}
RESOURCE_FIELDS = {"title", "type", "url", "lesson_ref"}


def _check_fields(updates: Dict[str, Any], allowed: set, what: str) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise MalformedInputError(f"Cannot update {what} fields: {', '.join(sorted(unknown))}")


def _mutate_module(store: CollectionStore, module_id: str, change: Callable[[Dict[str, Any]], Any]):
    """
    Apply `change` to one module document and persist it.

    The changed module is re-validated before anything is written, so a
    change that breaks lesson ordering or resource references leaves the
    stored catalogue untouched.

    Returns:
        (validated module, whatever `change` returned)
    """
    with store.locked(names.MODULES):
        modules = store.read(names.MODULES)
        i = find_index(modules, module_id)
        if i is None:
            raise NotFoundError(names.MODULES, module_id)
        result = change(modules[i])
        module = validate(Module, modules[i])
        modules[i] = to_document(module)
        store.write(names.MODULES, modules)
    return module, result


def create_module(store: CollectionStore, payload: Union[Module, Dict[str, Any]]) -> Module:
    """Add a module to the catalogue"""
    data = dict(payload) if isinstance(payload, dict) else payload.model_dump()
    data.setdefault("id", new_id("module"))
    data.setdefault("created_at", utcnow())
    module = validate(Module, data)

    with store.locked(names.MODULES):
        modules = store.read(names.MODULES)
        if find_index(modules, module.id) is not None:
            raise MalformedInputError(f"Module id {module.id} is already taken")
        modules.append(to_document(module))
        store.write(names.MODULES, modules)

    logger.info("Created module %s", module.id)
    return module


def get_module(store: CollectionStore, module_id: str) -> Optional[Module]:
    """Get module by ID"""
    modules = store.read(names.MODULES)
    i = find_index(modules, module_id)
    return Module(**modules[i]) if i is not None else None


def list_modules(store: CollectionStore, teacher_id: Optional[str] = None) -> List[Module]:
    """All modules, or only those assigned to `teacher_id`"""
    return [
        Module(**m) for m in store.read(names.MODULES)
        if teacher_id is None or teacher_id in m.get("assigned_teacher_ids", [])
    ]


def update_module(store: CollectionStore, module_id: str, updates: Dict[str, Any]) -> Module:
    """Update title, description, level or status"""
    _check_fields(updates, MODULE_FIELDS, "module")
    module, _ = _mutate_module(store, module_id, lambda m: m.update(updates))
    return module


def delete_module(store: CollectionStore, module_id: str) -> bool:
    """Remove a module and drop it from student progress"""
    with store.locked(names.MODULES):
        modules = store.read(names.MODULES)
        kept = [m for m in modules if m["id"] != module_id]
        if len(kept) == len(modules):
            return False
        store.write(names.MODULES, kept)
    remove_course_progress(store, module_id)
    logger.info("Deleted module %s", module_id)
    return True


def assign_teacher(store: CollectionStore, module_id: str, teacher_id: str) -> Module:
    """Add a teacher to the module's assigned teachers"""
    users = store.read(names.USERS)
    i = find_index(users, teacher_id)
    if i is None:
        raise NotFoundError(names.USERS, teacher_id)
    if users[i]["role"] != "teacher":
        raise MalformedInputError(f"{teacher_id} is not a teacher")

    def change(m):
        if teacher_id not in m["assigned_teacher_ids"]:
            m["assigned_teacher_ids"].append(teacher_id)

    module, _ = _mutate_module(store, module_id, change)
    return module


def unassign_teacher(store: CollectionStore, module_id: str, teacher_id: str) -> Module:
    def change(m):
        m["assigned_teacher_ids"] = [t for t in m["assigned_teacher_ids"] if t != teacher_id]

    module, _ = _mutate_module(store, module_id, change)
    return module


# ------------------------------------------------------------------ lessons

def add_lesson(store: CollectionStore, module_id: str, payload: Dict[str, Any]) -> Lesson:
    """Append a lesson; it is ordered after every existing lesson"""
    _check_fields(payload, LESSON_FIELDS | {"id"}, "lesson")

    def change(m):
        order = max((l["order"] for l in m["lessons"]), default=0) + 1
        lesson = validate(Lesson, {"id": new_id("lesson"), **payload, "order": order})
        if find_index(m["lessons"], lesson.id) is not None:
            raise MalformedInputError(f"Lesson id {lesson.id} is already taken")
        m["lessons"].append(to_document(lesson))
        return lesson

    module, lesson = _mutate_module(store, module_id, change)
    refresh_module_progress(store, to_document(module))
    return lesson


def update_lesson(store: CollectionStore, module_id: str, lesson_id: str, updates: Dict[str, Any]) -> Lesson:
    """Update title, duration or media of a lesson; order is fixed"""
    _check_fields(updates, LESSON_FIELDS, "lesson")

    def change(m):
        j = find_index(m["lessons"], lesson_id)
        if j is None:
            raise NotFoundError(f"{names.MODULES}/{module_id}/lessons", lesson_id)
        m["lessons"][j] = to_document(validate(Lesson, {**m["lessons"][j], **updates}))
        return Lesson(**m["lessons"][j])

    _, lesson = _mutate_module(store, module_id, change)
    return lesson


def delete_lesson(store: CollectionStore, module_id: str, lesson_id: str) -> bool:
    """Remove a lesson; resources pointing at it become module-level"""
    def change(m):
        before = len(m["lessons"])
        m["lessons"] = [l for l in m["lessons"] if l["id"] != lesson_id]
        for resource in m["resources"]:
            if resource.get("lesson_ref") == lesson_id:
                resource["lesson_ref"] = None
        return len(m["lessons"]) != before

    module, deleted = _mutate_module(store, module_id, change)
    if deleted:
        refresh_module_progress(store, to_document(module))
    return deleted


# ------------------------------------------------------------------ resources

def add_resource(store: CollectionStore, module_id: str, payload: Dict[str, Any]) -> Resource:
    """Attach a resource to a module, optionally tied to one of its lessons"""
    _check_fields(payload, RESOURCE_FIELDS | {"id"}, "resource")
    resource = validate(Resource, {"id": new_id("res"), **payload})

    def change(m):
        if find_index(m["resources"], resource.id) is not None:
            raise MalformedInputError(f"Resource id {resource.id} is already taken")
        m["resources"].append(to_document(resource))

    _mutate_module(store, module_id, change)
    return resource


def update_resource(store: CollectionStore, module_id: str, resource_id: str, updates: Dict[str, Any]) -> Resource:
    _check_fields(updates, RESOURCE_FIELDS, "resource")

    def change(m):
        j = find_index(m["resources"], resource_id)
        if j is None:
            raise NotFoundError(f"{names.MODULES}/{module_id}/resources", resource_id)
        m["resources"][j] = to_document(validate(Resource, {**m["resources"][j], **updates}))
        return Resource(**m["resources"][j])

    _, resource = _mutate_module(store, module_id, change)
    return resource


def delete_resource(store: CollectionStore, module_id: str, resource_id: str) -> bool:
    def change(m):
        before = len(m["resources"])
        m["resources"] = [r for r in m["resources"] if r["id"] != resource_id]
        return len(m["resources"]) != before

    _, deleted = _mutate_module(store, module_id, change)
    return deleted
