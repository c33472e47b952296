import math
from typing import Any, Dict, List


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round .5 away from zero instead of to the nearest even digit"""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


class ProgressCalculator:
    """
    Keeps the derived fields of a student progress document consistent with
    its completed lessons.
    """

    STREAK_FOR_BADGE = 7

    @staticmethod
    def course_percent(completed_count: int, total_lessons: int) -> int:
        if total_lessons <= 0:
            return 0
        return int(round_half_up(100 * completed_count / total_lessons))

    @staticmethod
    def recalculate_course(course: Dict[str, Any], total_lessons: int) -> Dict[str, Any]:
        """Update progress_percent and status from completed_lesson_ids"""
        completed = len(course.get("completed_lesson_ids", []))
        course["progress_percent"] = ProgressCalculator.course_percent(completed, total_lessons)
        course["status"] = "completed" if total_lessons > 0 and completed == total_lessons else "in-progress"
        return course

    @staticmethod
    def recalculate_totals(progress: Dict[str, Any]) -> Dict[str, Any]:
        """Roll per-course numbers up into the student-level totals"""
        courses = progress.get("courses", [])
        progress["total_lessons_completed"] = sum(len(c.get("completed_lesson_ids", [])) for c in courses)
        progress["total_study_hours"] = round_half_up(sum(c.get("total_study_hours", 0) for c in courses), 1)
        progress["achievements"] = ProgressCalculator.achievements(progress)
        return progress

    @staticmethod
    def achievements(progress: Dict[str, Any]) -> List[str]:
        """
        Achievement codes unlocked by the progress totals.

        Codes are returned in a fixed order so documents stay stable.
        """
        unlocked = []
        if progress.get("total_lessons_completed", 0) >= 1:
            unlocked.append("first_lesson")
        if progress.get("total_study_hours", 0) >= 10:
            unlocked.append("10_hours")
        if progress.get("total_study_hours", 0) >= 50:
            unlocked.append("50_hours")
        if progress.get("current_streak_days", 0) >= ProgressCalculator.STREAK_FOR_BADGE:
            unlocked.append("week_streak")
        if any(c.get("status") == "completed" for c in progress.get("courses", [])):
            unlocked.append("course_complete")
        return unlocked


class PaymentCalculator:
    """Amount bookkeeping for teacher payments"""

    @staticmethod
    def recalculate(payment: Dict[str, Any]) -> Dict[str, Any]:
        """total = hours * rate, pending = total - paid"""
        payment["total_amount"] = payment["total_hours"] * payment["hourly_rate"]
        payment["pending_amount"] = payment["total_amount"] - payment["paid_amount"]
        return payment

    @staticmethod
    def settle_status(payment: Dict[str, Any]) -> str:
        """Mark fully paid records as paid; otherwise keep the current status"""
        if payment["pending_amount"] <= 0:
            return "paid"
        if payment.get("status") == "paid":
            return "pending"
        return payment.get("status", "pending")
