import logging
from datetime import datetime
from typing import Any, Dict, Optional

from lexilearn import collection_names as names
from lexilearn.calculations import ProgressCalculator, round_half_up
from lexilearn.crud.base import find_index, to_document, utcnow, validate
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import StudentProgress
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)


def _load_module(store: CollectionStore, module_id: str) -> Dict[str, Any]:
    modules = store.read(names.MODULES)
    i = find_index(modules, module_id)
    if i is None:
        raise NotFoundError(names.MODULES, module_id)
    return modules[i]


def _require_student(store: CollectionStore, student_id: str) -> None:
    users = store.read(names.USERS)
    i = find_index(users, student_id)
    if i is None:
        raise NotFoundError(names.USERS, student_id)
    if users[i]["role"] != "student":
        raise MalformedInputError(f"{student_id} is not a student")


def _new_course(module: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    return {
        "course_id": module["id"],
        "course_name": module["title"],
        "enrolled_at": now.isoformat(),
        "completed_lesson_ids": [],
        "lesson_completed_at": {},
        "progress_percent": 0,
        "total_study_hours": 0.0,
        "status": "in-progress",
        "last_accessed_at": now.isoformat(),
    }


def _empty_progress(student_id: str) -> Dict[str, Any]:
    return to_document(StudentProgress(student_id=student_id))


def get_progress(store: CollectionStore, student_id: str) -> Optional[StudentProgress]:
    """Get the progress record of one student"""
    doc = store.read(names.STUDENT_PROGRESS).get(student_id)
    return StudentProgress(**doc) if doc else None


def enroll_student(
    store: CollectionStore,
    student_id: str,
    module_id: str,
    now: Optional[datetime] = None
) -> StudentProgress:
    """Enroll a student in a module; enrolling twice is a no-op"""
    now = now or utcnow()
    _require_student(store, student_id)
    module = _load_module(store, module_id)

    with store.locked(names.STUDENT_PROGRESS):
        all_progress = store.read(names.STUDENT_PROGRESS)
        progress = all_progress.setdefault(student_id, _empty_progress(student_id))
        if not any(c["course_id"] == module_id for c in progress["courses"]):
            course = _new_course(module, now)
            ProgressCalculator.recalculate_course(course, len(module["lessons"]))
            progress["courses"].append(course)
            ProgressCalculator.recalculate_totals(progress)
            store.write(names.STUDENT_PROGRESS, all_progress)
            logger.info("Enrolled %s in %s", student_id, module_id)
    return StudentProgress(**progress)


def complete_lesson(
    store: CollectionStore,
    student_id: str,
    module_id: str,
    lesson_id: str,
    minutes_spent: Optional[int] = None,
    now: Optional[datetime] = None
) -> StudentProgress:
    """
    Mark a lesson as completed and update every derived field.

    Args:
        minutes_spent: Study time to credit; defaults to the lesson duration
        now: Completion time (defaults to current UTC time)

    Enrolls the student first if needed. Completing a lesson twice changes nothing.
    """
    now = now or utcnow()
    module = _load_module(store, module_id)
    lesson = next((l for l in module["lessons"] if l["id"] == lesson_id), None)
    if lesson is None:
        raise NotFoundError(f"{names.MODULES}/{module_id}/lessons", lesson_id)
    if minutes_spent is not None and minutes_spent < 0:
        raise MalformedInputError("minutes_spent cannot be negative")

    enroll_student(store, student_id, module_id, now=now)

    with store.locked(names.STUDENT_PROGRESS):
        all_progress = store.read(names.STUDENT_PROGRESS)
        progress = all_progress[student_id]
        course = next(c for c in progress["courses"] if c["course_id"] == module_id)
        if lesson_id in course["completed_lesson_ids"]:
            return StudentProgress(**progress)

        minutes = lesson["duration_minutes"] if minutes_spent is None else minutes_spent
        hours = round_half_up(minutes / 60, 1)

        course["completed_lesson_ids"].append(lesson_id)
        course.setdefault("lesson_completed_at", {})[lesson_id] = now.isoformat()
        course["total_study_hours"] = round_half_up(course["total_study_hours"] + hours, 1)
        course["last_accessed_at"] = now.isoformat()
        ProgressCalculator.recalculate_course(course, len(module["lessons"]))

        today = now.date().isoformat()
        log = next((entry for entry in progress["study_logs"] if entry["date"] == today), None)
        if log is None:
            progress["study_logs"].append({"date": today, "hours": hours, "lessons_completed": 1})
            progress["study_logs"].sort(key=lambda entry: entry["date"])
        else:
            log["hours"] = round_half_up(log["hours"] + hours, 1)
            log["lessons_completed"] += 1

        ProgressCalculator.recalculate_totals(progress)
        record = validate(StudentProgress, progress)
        store.write(names.STUDENT_PROGRESS, all_progress)

    logger.info("%s completed %s in %s", student_id, lesson_id, module_id)
    return record


def refresh_module_progress(store: CollectionStore, module: Dict[str, Any]) -> int:
    """
    Re-derive course fields after a module's lesson list changed.

    Completed ids of lessons that no longer exist are dropped.

    Returns:
        Number of progress records touched
    """
    if not store.exists(names.STUDENT_PROGRESS):
        return 0
    lesson_ids = {lesson["id"] for lesson in module["lessons"]}
    touched = 0

    def mutate(all_progress):
        nonlocal touched
        for progress in all_progress.values():
            changed = False
            for course in progress["courses"]:
                if course["course_id"] != module["id"]:
                    continue
                course["completed_lesson_ids"] = [i for i in course["completed_lesson_ids"] if i in lesson_ids]
                course["lesson_completed_at"] = {
                    k: v for k, v in course.get("lesson_completed_at", {}).items() if k in lesson_ids
                }
                ProgressCalculator.recalculate_course(course, len(lesson_ids))
                changed = True
            if changed:
                ProgressCalculator.recalculate_totals(progress)
                touched += 1

    store.update(names.STUDENT_PROGRESS, mutate)
    return touched


def remove_course_progress(store: CollectionStore, module_id: str) -> int:
    """Drop a deleted module from every student's course list"""
    if not store.exists(names.STUDENT_PROGRESS):
        return 0
    touched = 0

    def mutate(all_progress):
        nonlocal touched
        for progress in all_progress.values():
            kept = [c for c in progress["courses"] if c["course_id"] != module_id]
            if len(kept) != len(progress["courses"]):
                progress["courses"] = kept
                ProgressCalculator.recalculate_totals(progress)
                touched += 1

    store.update(names.STUDENT_PROGRESS, mutate)
    return touched
