import logging
import math
import random
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from lexilearn import collection_names as names
from lexilearn.calculations import PaymentCalculator, ProgressCalculator, round_half_up
from lexilearn.config import settings
from lexilearn.crud.base import to_document, utcnow, validate
from lexilearn.schemas import (
    LEVELS, PAYMENT_METHODS, PAYMENT_STATUSES, PLANS,
    Module, PlatformSettings, StudentProgress, Subscription, TeacherPayment, User
)
from lexilearn.seed_data import (
    ADMIN_USER, BASELINE_STUDENTS, BASELINE_TEACHERS, DEFAULT_PASSWORD,
    DEFAULT_PLATFORM_SETTINGS, MODULE_CATALOGUE, PROGRESS_PROFILE
)
from lexilearn.store import CollectionStore, get_store

logger = logging.getLogger(__name__)

SEED_VERSION = 1
STUDY_LOG_DAYS = 30


class RandomSource(Protocol):
    """Anything that yields floats in [0, 1); random.Random qualifies"""

    def random(self) -> float: ...


def _avatar(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={name.replace(' ', '+')}"


class SeedGenerator:
    """
    Populates an empty store with the baseline dataset.

    Every step checks its own precondition (a missing collection, a missing
    per-user record, or the initialization marker) before generating
    anything, so `run` is safe to call on every startup. Random values come
    from the injected source and timestamps from the injected clock.
    """

    def __init__(
        self,
        store: CollectionStore,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.rng = rng or random.Random(settings.seed_random)
        self.clock = clock or utcnow

    # -------------------------------------------------------------- random helpers

    def _draw(self) -> float:
        return self.rng.random()

    def _below(self, n: int) -> int:
        """Integer in [0, n)"""
        return min(int(self._draw() * n), n - 1)

    def _pick(self, options: Sequence[Any]) -> Any:
        return options[self._below(len(options))]

    # -------------------------------------------------------------- entry point

    def run(self) -> Dict[str, int]:
        """
        Run every seed step.

        Returns:
            Number of records created per step (0 when a step was skipped)
        """
        now = self.clock()
        # The marker is checked by the first step and written by the last
        with self.store.locked(names.SEED_STATE):
            summary = {
                "users": self.seed_baseline_users(now),
                "admin": self.ensure_admin(now),
                "platform_settings": self.ensure_platform_settings(),
                "modules": self.ensure_modules(now),
                "subscriptions": self.ensure_subscriptions(now),
                "teacher_payments": self.ensure_teacher_payments(now),
                "student_progress": self.ensure_student_progress(now),
            }
            self.mark_initialized(now)
        logger.info("Seed complete: %s", summary)
        return summary

    # -------------------------------------------------------------- steps

    def seed_baseline_users(self, now: datetime) -> int:
        """Baseline students and teachers, only before the store was first initialized"""
        if self.store.exists(names.SEED_STATE):
            logger.debug("Store already initialized, skipping baseline users")
            return 0

        users = self.store.read(names.USERS)
        existing = {u["id"] for u in users}
        created = []
        for user_id, name, email, joined_days, idle_hours in BASELINE_STUDENTS:
            if user_id in existing:
                continue
            created.append(User(
                id=user_id, display_name=name, email=email, password_secret=DEFAULT_PASSWORD,
                role="student", profile_image_ref=_avatar(name),
                joined_at=now - timedelta(days=joined_days),
                last_active_at=now - timedelta(hours=idle_hours),
            ))
        for user_id, name, email, subject, joined_days in BASELINE_TEACHERS:
            if user_id in existing:
                continue
            created.append(User(
                id=user_id, display_name=name, email=email, password_secret=DEFAULT_PASSWORD,
                role="teacher", subject=subject, profile_image_ref=_avatar(name),
                joined_at=now - timedelta(days=joined_days), last_active_at=now,
            ))

        if created:
            users.extend(to_document(u) for u in created)
            self.store.write(names.USERS, users)
            logger.info("Seeded %d baseline users", len(created))
        return len(created)

    def ensure_admin(self, now: datetime) -> int:
        users = self.store.read(names.USERS)
        if any(u["role"] == "admin" for u in users):
            return 0
        admin = validate(User, {**ADMIN_USER, "joined_at": now, "last_active_at": now})
        users.append(to_document(admin))
        self.store.write(names.USERS, users)
        logger.info("Created admin account %s", admin.id)
        return 1

    def ensure_platform_settings(self) -> int:
        if self.store.exists(names.PLATFORM_SETTINGS):
            return 0
        platform = PlatformSettings(**DEFAULT_PLATFORM_SETTINGS)
        self.store.write(names.PLATFORM_SETTINGS, to_document(platform))
        logger.info("Wrote default platform settings")
        return 1

    def ensure_modules(self, now: datetime) -> int:
        if self.store.exists(names.MODULES):
            return 0
        modules = [validate(Module, {**entry, "created_at": now}) for entry in MODULE_CATALOGUE]
        self.store.write(names.MODULES, [to_document(m) for m in modules])
        logger.info("Seeded %d modules", len(modules))
        return len(modules)

    def ensure_subscriptions(self, now: datetime) -> int:
        students = [u for u in self.store.read(names.USERS) if u["role"] == "student"]
        subscriptions = self.store.read(names.SUBSCRIPTIONS)
        subscribed = {s["student_id"] for s in subscriptions}
        pricing = PlatformSettings(
            **self.store.read(names.PLATFORM_SETTINGS, default=DEFAULT_PLATFORM_SETTINGS)
        ).subscription_pricing

        created = 0
        for student in students:
            if student["id"] in subscribed:
                continue
            plan = self._pick(PLANS)
            status = "active" if self._draw() > 0.2 else "pending"
            subscription = Subscription(
                student_id=student["id"],
                plan=plan,
                status=status,
                start_date=now - timedelta(days=self._draw() * 90),
                next_payment_date=now + timedelta(days=self._draw() * 30),
                amount=pricing[plan],
            )
            subscriptions.append(to_document(subscription))
            created += 1

        if created:
            self.store.write(names.SUBSCRIPTIONS, subscriptions)
            logger.info("Seeded %d subscriptions", created)
        return created

    def _synthesize_payment(self, teacher_id: str, hourly_rate: float, now: datetime) -> TeacherPayment:
        total_hours = int(self._draw() * 100) + 20
        payment = {
            "teacher_id": teacher_id,
            "total_hours": total_hours,
            "hourly_rate": hourly_rate,
            "paid_amount": 0,
            "status": self._pick(PAYMENT_STATUSES),
            "payment_history": [],
        }
        PaymentCalculator.recalculate(payment)
        payment["paid_amount"] = math.floor(payment["total_amount"] * (self._draw() * 0.5 + 0.3))
        PaymentCalculator.recalculate(payment)

        # Newest first, one month apart
        for i in range(self._below(5) + 1):
            payment["payment_history"].append({
                "id": f"payment_{teacher_id}_{i}",
                "amount": int(self._draw() * 1000) + 500,
                "date": now - timedelta(days=30 * (i + 1)),
                "method": self._pick(PAYMENT_METHODS),
                "status": "completed",
            })
        payment["last_payment_date"] = payment["payment_history"][0]["date"]
        return validate(TeacherPayment, payment)

    def ensure_teacher_payments(self, now: datetime) -> int:
        teachers = [u for u in self.store.read(names.USERS) if u["role"] == "teacher"]
        payments = self.store.read(names.TEACHER_PAYMENTS)
        known = {p["teacher_id"] for p in payments}
        hourly_rate = PlatformSettings(
            **self.store.read(names.PLATFORM_SETTINGS, default=DEFAULT_PLATFORM_SETTINGS)
        ).teacher_hourly_rate

        created = [
            self._synthesize_payment(t["id"], hourly_rate, now) for t in teachers if t["id"] not in known
        ]
        if created:
            payments.extend(to_document(p) for p in created)
            self.store.write(names.TEACHER_PAYMENTS, payments)
            logger.info("Seeded %d teacher payment records", len(created))
        return len(created)

    def _synthesize_course(self, module: Module, fraction: float, course_index: int, now: datetime) -> Dict[str, Any]:
        lessons = sorted(module.lessons, key=lambda l: l.order)
        total = len(lessons)
        completed = math.floor(total * (fraction + (self._draw() * 0.2 - 0.1)))
        completed = max(0, min(total, completed))

        minutes = sum(
            lesson.duration_minutes + math.floor(self._draw() * 20 - 10) for lesson in lessons[:completed]
        )
        course = {
            "course_id": module.id,
            "course_name": module.title,
            "enrolled_at": now - timedelta(days=60 - course_index * 15),
            "completed_lesson_ids": [lesson.id for lesson in lessons[:completed]],
            "total_study_hours": round_half_up(minutes / 60, 1),
            "last_accessed_at": now - timedelta(days=self._draw() * 7),
        }
        return ProgressCalculator.recalculate_course(course, total)

    def _synthesize_study_logs(self, now: datetime) -> List[Dict[str, Any]]:
        logs = []
        for days_ago in range(STUDY_LOG_DAYS - 1, -1, -1):
            hours = round_half_up(self._draw() * 4, 1) if self._draw() > 0.3 else 0
            logs.append({
                "date": (now - timedelta(days=days_ago)).date(),
                "hours": hours,
                "lessons_completed": int(self._draw() * 3) if hours > 0 else 0,
            })
        return logs

    def ensure_student_progress(self, now: datetime) -> int:
        students = [u for u in self.store.read(names.USERS) if u["role"] == "student"]
        modules = [Module(**m) for m in self.store.read(names.MODULES)]
        all_progress = self.store.read(names.STUDENT_PROGRESS)

        created = 0
        for position, student in enumerate(students):
            if student["id"] in all_progress:
                continue
            fraction = PROGRESS_PROFILE[position % len(PROGRESS_PROFILE)]
            enrolled = modules[:self._below(3) + 2]
            progress = {
                "student_id": student["id"],
                "level": self._pick(LEVELS),
                "courses": [self._synthesize_course(m, fraction, i, now) for i, m in enumerate(enrolled)],
                "current_streak_days": self._below(15) + 1,
                "study_logs": self._synthesize_study_logs(now),
            }
            ProgressCalculator.recalculate_totals(progress)
            all_progress[student["id"]] = to_document(validate(StudentProgress, progress))
            created += 1

        if created:
            self.store.write(names.STUDENT_PROGRESS, all_progress)
            logger.info("Seeded progress for %d students", created)
        return created

    def mark_initialized(self, now: datetime) -> bool:
        with self.store.locked(names.SEED_STATE):
            if self.store.exists(names.SEED_STATE):
                return False
            self.store.write(names.SEED_STATE, {"initialized_at": now.isoformat(), "seed_version": SEED_VERSION})
            return True


def seed_all(
    store: Optional[CollectionStore] = None,
    rng: Optional[RandomSource] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> Dict[str, int]:
    """Seed the given (or default) store"""
    return SeedGenerator(store or get_store(), rng=rng, clock=clock).run()
