import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from lexilearn import collection_names as names
from lexilearn.calculations import PaymentCalculator
from lexilearn.crud.base import find_index, to_document, utcnow, validate
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import PLANS, PlatformSettings, Subscription, TeacherPayment
from lexilearn.seed_data import DEFAULT_PLATFORM_SETTINGS
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)

# Billing period per plan, in days
PLAN_PERIOD_DAYS = {"monthly": 30, "quarterly": 90, "yearly": 365}


def get_platform_settings(store: CollectionStore) -> PlatformSettings:
    """Platform settings, or the built-in defaults if never written"""
    return PlatformSettings(**store.read(names.PLATFORM_SETTINGS, default=DEFAULT_PLATFORM_SETTINGS))


def update_platform_settings(store: CollectionStore, updates: Dict[str, Any]) -> PlatformSettings:
    with store.locked(names.PLATFORM_SETTINGS):
        current = store.read(names.PLATFORM_SETTINGS, default=DEFAULT_PLATFORM_SETTINGS)
        settings = validate(PlatformSettings, {**current, **updates})
        store.write(names.PLATFORM_SETTINGS, to_document(settings))
    return settings


def price_for(settings: PlatformSettings, plan: str) -> float:
    if plan not in settings.subscription_pricing:
        raise MalformedInputError(f"No price configured for plan {plan}")
    return settings.subscription_pricing[plan]


# ------------------------------------------------------------------ subscriptions

def get_subscription(store: CollectionStore, student_id: str) -> Optional[Subscription]:
    subscriptions = store.read(names.SUBSCRIPTIONS)
    i = find_index(subscriptions, student_id, key="student_id")
    return Subscription(**subscriptions[i]) if i is not None else None


def create_subscription(
    store: CollectionStore,
    student_id: str,
    plan: str,
    status: str = "pending",
    now: Optional[datetime] = None
) -> Subscription:
    """Subscribe a student; the amount comes from the current price table"""
    if plan not in PLANS:
        raise MalformedInputError(f"Unknown plan {plan}")
    users = store.read(names.USERS)
    i = find_index(users, student_id)
    if i is None:
        raise NotFoundError(names.USERS, student_id)
    if users[i]["role"] != "student":
        raise MalformedInputError(f"{student_id} is not a student")

    now = now or utcnow()
    subscription = validate(Subscription, {
        "student_id": student_id,
        "plan": plan,
        "status": status,
        "start_date": now,
        "next_payment_date": now + timedelta(days=PLAN_PERIOD_DAYS[plan]),
        "amount": price_for(get_platform_settings(store), plan),
    })

    with store.locked(names.SUBSCRIPTIONS):
        subscriptions = store.read(names.SUBSCRIPTIONS)
        if find_index(subscriptions, student_id, key="student_id") is not None:
            raise MalformedInputError(f"{student_id} already has a subscription")
        subscriptions.append(to_document(subscription))
        store.write(names.SUBSCRIPTIONS, subscriptions)
    return subscription


def activate_subscription(store: CollectionStore, student_id: str, now: Optional[datetime] = None) -> Subscription:
    """Mark a pending subscription as paid for the next billing period"""
    now = now or utcnow()
    with store.locked(names.SUBSCRIPTIONS):
        subscriptions = store.read(names.SUBSCRIPTIONS)
        i = find_index(subscriptions, student_id, key="student_id")
        if i is None:
            raise NotFoundError(names.SUBSCRIPTIONS, student_id)
        sub = subscriptions[i]
        sub["status"] = "active"
        sub["next_payment_date"] = (now + timedelta(days=PLAN_PERIOD_DAYS[sub["plan"]])).isoformat()
        subscription = validate(Subscription, sub)
        subscriptions[i] = to_document(subscription)
        store.write(names.SUBSCRIPTIONS, subscriptions)
    return subscription


# ------------------------------------------------------------------ teacher payments

def get_teacher_payment(store: CollectionStore, teacher_id: str) -> Optional[TeacherPayment]:
    payments = store.read(names.TEACHER_PAYMENTS)
    i = find_index(payments, teacher_id, key="teacher_id")
    return TeacherPayment(**payments[i]) if i is not None else None


def _mutate_payment(store: CollectionStore, teacher_id: str, change) -> TeacherPayment:
    with store.locked(names.TEACHER_PAYMENTS):
        payments = store.read(names.TEACHER_PAYMENTS)
        i = find_index(payments, teacher_id, key="teacher_id")
        if i is None:
            raise NotFoundError(names.TEACHER_PAYMENTS, teacher_id)
        payment = payments[i]
        change(payment)
        PaymentCalculator.recalculate(payment)
        payment["status"] = PaymentCalculator.settle_status(payment)
        record = validate(TeacherPayment, payment)
        payments[i] = to_document(record)
        store.write(names.TEACHER_PAYMENTS, payments)
    return record


def log_teacher_hours(store: CollectionStore, teacher_id: str, hours: float) -> TeacherPayment:
    """Add taught hours; total and pending amounts grow accordingly"""
    if hours <= 0:
        raise MalformedInputError("hours must be positive")

    def change(payment):
        payment["total_hours"] += hours

    return _mutate_payment(store, teacher_id, change)


def record_teacher_payment(
    store: CollectionStore,
    teacher_id: str,
    amount: float,
    method: str = "Bank Transfer",
    now: Optional[datetime] = None
) -> TeacherPayment:
    """
    Record a payout to a teacher.

    The amount may not exceed what is still pending. The new entry goes to
    the front of payment_history (newest first).
    """
    now = now or utcnow()
    if amount <= 0:
        raise MalformedInputError("amount must be positive")

    def change(payment):
        if amount > payment["pending_amount"]:
            raise MalformedInputError(
                f"Payment of {amount} exceeds pending amount {payment['pending_amount']}"
            )
        entry = {
            "id": f"payment_{teacher_id}_{len(payment['payment_history'])}",
            "amount": amount,
            "date": now.isoformat(),
            "method": method,
            "status": "completed",
        }
        payment["payment_history"].insert(0, entry)
        payment["paid_amount"] += amount
        payment["last_payment_date"] = now.isoformat()

    record = _mutate_payment(store, teacher_id, change)
    logger.info("Recorded payment of %s to %s", amount, teacher_id)
    return record
