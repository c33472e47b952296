"""Derived statistics over the stored collections. Nothing here writes."""
from datetime import datetime
from typing import List, Optional

from lexilearn import collection_names as names
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import (
    PLANS, AdminStats, FinancialSummary, Module, StudentDashboardStats, StudentProgress,
    Subscription, TeacherOverview, TeacherPayment, User, VoiceSession
)
from lexilearn.store import CollectionStore


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _local_date(moment: datetime):
    return moment.astimezone().date()


def admin_overview(store: CollectionStore, now: Optional[datetime] = None) -> AdminStats:
    """
    Platform-wide counts for the admin dashboard.

    Revenue sums every subscription amount, pending ones included; pending
    subscriptions are also reported separately as `pending_payments`.
    "Active today" compares calendar dates in the local time zone.
    """
    users = [User(**u) for u in store.read(names.USERS)]
    modules = store.read(names.MODULES)
    subscriptions = [Subscription(**s) for s in store.read(names.SUBSCRIPTIONS)]
    today = _local_date(now or datetime.now().astimezone())

    return AdminStats(
        total_students=sum(1 for u in users if u.role == "student"),
        total_teachers=sum(1 for u in users if u.role == "teacher"),
        total_modules=len(modules),
        total_revenue=round(sum(s.amount for s in subscriptions), 2),
        pending_payments=sum(1 for s in subscriptions if s.status == "pending"),
        active_today=sum(
            1 for u in users if u.last_active_at is not None and _local_date(u.last_active_at) == today
        ),
    )


def student_dashboard(store: CollectionStore, student_id: str) -> StudentDashboardStats:
    """Per-student numbers shown on the student dashboard"""
    users = store.read(names.USERS)
    user = next((u for u in users if u["id"] == student_id), None)
    if user is None:
        raise NotFoundError(names.USERS, student_id)
    if user["role"] != "student":
        raise MalformedInputError(f"{student_id} is not a student")

    sessions = [VoiceSession(**v) for v in store.read(names.VOICE_SESSIONS) if v["student_id"] == student_id]
    conversations = [c for c in store.read(names.TEXT_CONVERSATIONS) if c["student_id"] == student_id]
    doc = store.read(names.STUDENT_PROGRESS).get(student_id)
    progress = StudentProgress(**doc) if doc else StudentProgress(student_id=student_id)

    return StudentDashboardStats(
        student_id=student_id,
        avg_lexical_density=_mean([s.lexical_density for s in sessions]),
        avg_lexical_diversity=_mean([s.lexical_diversity for s in sessions]),
        enrolled_modules_count=len(progress.courses),
        current_streak=progress.current_streak_days,
        total_study_hours=progress.total_study_hours,
        total_lessons_completed=progress.total_lessons_completed,
        achievements=progress.achievements,
        voice_session_count=len(sessions),
        conversation_count=len(conversations),
    )


def teacher_overview(store: CollectionStore, teacher_id: str, now: Optional[datetime] = None) -> TeacherOverview:
    """
    Teaching load, recent activity and earnings for one teacher.

    Activity only counts courses of modules assigned to the teacher:
    `active_students` are students with at least one completed lesson there,
    `completions_today` are lessons completed on the current local date.
    """
    users = store.read(names.USERS)
    teacher = next((u for u in users if u["id"] == teacher_id), None)
    if teacher is None:
        raise NotFoundError(names.USERS, teacher_id)
    if teacher["role"] != "teacher":
        raise MalformedInputError(f"{teacher_id} is not a teacher")

    modules = [
        Module(**m) for m in store.read(names.MODULES) if teacher_id in m.get("assigned_teacher_ids", [])
    ]
    payment_doc = next((p for p in store.read(names.TEACHER_PAYMENTS) if p["teacher_id"] == teacher_id), None)
    payment = TeacherPayment(**payment_doc) if payment_doc else None

    module_ids = {m.id for m in modules}
    today = _local_date(now or datetime.now().astimezone())
    active_students = set()
    completions_today = 0
    for doc in store.read(names.STUDENT_PROGRESS).values():
        progress = StudentProgress(**doc)
        for course in progress.courses:
            if course.course_id not in module_ids:
                continue
            if course.completed_lesson_ids:
                active_students.add(progress.student_id)
            completions_today += sum(
                1 for moment in course.lesson_completed_at.values() if _local_date(moment) == today
            )

    return TeacherOverview(
        teacher_id=teacher_id,
        students_count=sum(1 for u in users if u["role"] == "student"),
        assigned_modules_count=len(modules),
        lessons_count=sum(len(m.lessons) for m in modules),
        resources_count=sum(len(m.resources) for m in modules),
        completions_today=completions_today,
        active_students=len(active_students),
        total_amount=payment.total_amount if payment else 0.0,
        paid_amount=payment.paid_amount if payment else 0.0,
        pending_amount=payment.pending_amount if payment else 0.0,
    )


def financial_summary(store: CollectionStore) -> FinancialSummary:
    """Subscription income and teacher payouts"""
    subscriptions = [Subscription(**s) for s in store.read(names.SUBSCRIPTIONS)]
    payments = [TeacherPayment(**p) for p in store.read(names.TEACHER_PAYMENTS)]

    revenue_by_plan = {plan: 0.0 for plan in PLANS}
    for sub in subscriptions:
        revenue_by_plan[sub.plan] = round(revenue_by_plan[sub.plan] + sub.amount, 2)

    return FinancialSummary(
        revenue_by_plan=revenue_by_plan,
        active_subscriptions=sum(1 for s in subscriptions if s.status == "active"),
        pending_subscriptions=sum(1 for s in subscriptions if s.status == "pending"),
        teacher_paid_total=round(sum(p.paid_amount for p in payments), 2),
        teacher_pending_total=round(sum(p.pending_amount for p in payments), 2),
    )
