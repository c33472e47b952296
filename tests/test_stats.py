from datetime import timedelta

import pytest

from lexilearn import collection_names as names
from lexilearn.crud import (
    complete_lesson, create_module, create_user, delete_lesson, enroll_student, save_voice_session
)
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.stats import admin_overview, financial_summary, student_dashboard, teacher_overview

from tests.conftest import FIXED_NOW


def _user(user_id, role, last_active=None):
    return {
        "id": user_id,
        "display_name": user_id.title(),
        "email": f"{user_id}@example.com",
        "role": role,
        "joined_at": (FIXED_NOW - timedelta(days=30)).isoformat(),
        "last_active_at": last_active.isoformat() if last_active else None,
    }


def _subscription(student_id, amount, plan="monthly", status="active"):
    return {
        "student_id": student_id,
        "plan": plan,
        "status": status,
        "start_date": FIXED_NOW.isoformat(),
        "next_payment_date": (FIXED_NOW + timedelta(days=30)).isoformat(),
        "amount": amount,
    }


@pytest.fixture
def platform(store):
    users = [_user(f"s{i}", "student") for i in range(1, 6)]
    users += [_user("t1", "teacher"), _user("t2", "teacher"), _user("admin", "admin")]
    store.write(names.USERS, users)
    store.write(names.SUBSCRIPTIONS, [
        _subscription("s1", 29.99),
        _subscription("s2", 29.99),
        _subscription("s3", 79.99, plan="quarterly"),
        _subscription("s4", 299.99, plan="yearly"),
        _subscription("s5", 29.99, status="pending"),
    ])
    store.write(names.MODULES, [{"id": "m1"}, {"id": "m2"}])
    return store


def test_admin_overview_counts_and_revenue(platform):
    stats = admin_overview(platform, now=FIXED_NOW)

    assert stats.total_students == 5
    assert stats.total_teachers == 2
    assert stats.total_modules == 2
    assert stats.total_revenue == 469.95
    assert stats.pending_payments == 1


def test_active_today_compares_calendar_dates(platform):
    platform.update(names.USERS, lambda users: [
        {**u, "last_active_at": FIXED_NOW.isoformat()} if u["id"] in ("s1", "t1") else u
        for u in users
    ])
    platform.update(names.USERS, lambda users: [
        {**u, "last_active_at": (FIXED_NOW - timedelta(days=3)).isoformat()} if u["id"] == "s2" else u
        for u in users
    ])

    assert admin_overview(platform, now=FIXED_NOW).active_today == 2


def test_admin_overview_on_empty_store(store):
    stats = admin_overview(store)

    assert stats.total_students == 0
    assert stats.total_revenue == 0
    assert stats.active_today == 0


def test_financial_summary_by_plan(platform):
    summary = financial_summary(platform)

    assert summary.revenue_by_plan == {"monthly": 89.97, "quarterly": 79.99, "yearly": 299.99}
    assert summary.active_subscriptions == 4
    assert summary.pending_subscriptions == 1
    assert summary.teacher_paid_total == 0


def test_student_dashboard_averages_voice_metrics(seeded_store):
    for i, (density, diversity) in enumerate([(40.0, 70.0), (60.0, 80.0)]):
        save_voice_session(seeded_store, {
            "id": f"voice_{i}",
            "student_id": "student_1",
            "created_at": FIXED_NOW,
            "lexical_density": density,
            "lexical_diversity": diversity,
        })

    stats = student_dashboard(seeded_store, "student_1")

    assert stats.avg_lexical_density == 50.0
    assert stats.avg_lexical_diversity == 75.0
    assert stats.voice_session_count == 2
    assert stats.enrolled_modules_count >= 2


def test_student_dashboard_without_sessions(seeded_store):
    stats = student_dashboard(seeded_store, "student_2")

    assert stats.avg_lexical_density == 0
    assert stats.avg_lexical_diversity == 0
    assert stats.conversation_count == 0


def test_student_dashboard_rejects_bad_ids(seeded_store):
    with pytest.raises(NotFoundError):
        student_dashboard(seeded_store, "student_99")
    with pytest.raises(MalformedInputError):
        student_dashboard(seeded_store, "teacher_1")


def test_teacher_overview(seeded_store):
    overview = teacher_overview(seeded_store, "teacher_1")

    assert overview.assigned_modules_count == 2
    assert overview.lessons_count == 22
    assert overview.resources_count == 3
    assert overview.students_count == 7
    assert overview.pending_amount == overview.total_amount - overview.paid_amount


def test_teacher_activity_counts_only_assigned_modules(store):
    create_user(store, {"id": "t1", "display_name": "Tess", "email": "tess@school.com", "role": "teacher"})
    for sid in ("s1", "s2", "s3"):
        create_user(store, {"id": sid, "display_name": sid.upper(), "email": f"{sid}@student.com", "role": "student"})
    lessons = [
        {"id": f"l{i}", "title": f"Lesson {i}", "duration_minutes": 30, "order": i} for i in (1, 2, 3)
    ]
    create_module(store, {"id": "mine", "title": "Mine", "assigned_teacher_ids": ["t1"], "lessons": lessons})
    create_module(store, {"id": "other", "title": "Other", "lessons": lessons})

    complete_lesson(store, "s1", "mine", "l1", now=FIXED_NOW)
    complete_lesson(store, "s1", "mine", "l2", now=FIXED_NOW)
    complete_lesson(store, "s2", "mine", "l1", now=FIXED_NOW - timedelta(days=2))
    complete_lesson(store, "s3", "other", "l1", now=FIXED_NOW)
    enroll_student(store, "s3", "mine")

    overview = teacher_overview(store, "t1", now=FIXED_NOW)

    assert overview.completions_today == 2
    assert overview.active_students == 2


def test_teacher_activity_drops_removed_lessons(store):
    create_user(store, {"id": "t1", "display_name": "Tess", "email": "tess@school.com", "role": "teacher"})
    create_user(store, {"id": "s1", "display_name": "S1", "email": "s1@student.com", "role": "student"})
    create_module(store, {
        "id": "mine", "title": "Mine", "assigned_teacher_ids": ["t1"],
        "lessons": [{"id": "l1", "title": "One", "duration_minutes": 30, "order": 1}],
    })
    complete_lesson(store, "s1", "mine", "l1", now=FIXED_NOW)

    delete_lesson(store, "mine", "l1")

    overview = teacher_overview(store, "t1", now=FIXED_NOW)
    assert overview.completions_today == 0
    assert overview.active_students == 0
