"""
Document schemas for the LexiLearn data layer.

Each collection stores plain JSON; these models validate documents on the way
in and give typed access on the way out. Field names match the persisted keys.
"""
from pydantic import BaseModel, Field, AfterValidator, model_validator
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import date, datetime, timezone


def _ensure_aware(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC so mixed sources stay comparable
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Timestamp = Annotated[datetime, AfterValidator(_ensure_aware)]

Role = Literal["student", "teacher", "admin"]
Plan = Literal["monthly", "quarterly", "yearly"]
ResourceType = Literal["pdf", "link", "image", "other"]

ROLES = ("student", "teacher", "admin")
PLANS = ("monthly", "quarterly", "yearly")
LEVELS = ("Beginner", "Intermediate", "Advanced")
PAYMENT_STATUSES = ("paid", "pending", "overdue")
PAYMENT_METHODS = ("Bank Transfer", "PayPal", "Check")
ACHIEVEMENTS = ("first_lesson", "10_hours", "50_hours", "week_streak", "course_complete")


# ---------------------------------------------------------------- users

class UserCreate(BaseModel):
    """Schema for creating a user"""
    id: Optional[str] = None
    display_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password_secret: str = ""
    role: Role
    profile_image_ref: Optional[str] = None
    subject: Optional[str] = None  # teachers only


class User(UserCreate):
    """Persisted user record"""
    id: str
    joined_at: Timestamp
    last_active_at: Optional[Timestamp] = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile"""
    display_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    profile_image_ref: Optional[str] = None
    password_secret: Optional[str] = None

    model_config = {"extra": "forbid"}


# ---------------------------------------------------------------- modules

class Lesson(BaseModel):
    id: str
    title: str
    duration_minutes: int = Field(gt=0)
    media_ref: Optional[str] = None
    order: int = Field(ge=1)


class Resource(BaseModel):
    id: str
    title: str
    type: ResourceType = "other"
    url: str = Field(min_length=1)
    lesson_ref: Optional[str] = None


class Module(BaseModel):
    """Course with its ordered lessons and attached resources"""
    id: str
    title: str
    description: str = ""
    level: str = "Beginner"
    status: str = "active"
    created_at: Timestamp
    assigned_teacher_ids: List[str] = Field(default_factory=list)
    lessons: List[Lesson] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_lessons(self):
        orders = [lesson.order for lesson in self.lessons]
        if any(b <= a for a, b in zip(orders, orders[1:])):
            raise ValueError("lesson order must be unique and increasing")
        lesson_ids = {lesson.id for lesson in self.lessons}
        for resource in self.resources:
            if resource.lesson_ref and resource.lesson_ref not in lesson_ids:
                raise ValueError(f"resource {resource.id} refers to unknown lesson {resource.lesson_ref}")
        return self


# ---------------------------------------------------------------- progress

class CourseProgress(BaseModel):
    course_id: str
    course_name: str = ""
    enrolled_at: Timestamp
    completed_lesson_ids: List[str] = Field(default_factory=list)
    lesson_completed_at: Dict[str, Timestamp] = Field(default_factory=dict)  # lesson id -> completion time
    progress_percent: int = 0
    total_study_hours: float = 0.0
    status: Literal["in-progress", "completed"] = "in-progress"
    last_accessed_at: Optional[Timestamp] = None


class StudyLog(BaseModel):
    date: date
    hours: float = 0.0
    lessons_completed: int = 0


class StudentProgress(BaseModel):
    student_id: str
    level: str = "Beginner"
    courses: List[CourseProgress] = Field(default_factory=list)
    total_study_hours: float = 0.0
    total_lessons_completed: int = 0
    current_streak_days: int = 0
    achievements: List[str] = Field(default_factory=list)
    study_logs: List[StudyLog] = Field(default_factory=list)


# ---------------------------------------------------------------- payments

class Subscription(BaseModel):
    student_id: str
    plan: Plan
    status: Literal["active", "pending"]
    start_date: Timestamp
    next_payment_date: Timestamp
    amount: float


class PaymentRecord(BaseModel):
    id: str
    amount: float = Field(gt=0)
    date: Timestamp
    method: str
    status: str = "completed"


class TeacherPayment(BaseModel):
    teacher_id: str
    total_hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)
    total_amount: float
    paid_amount: float
    pending_amount: float
    status: Literal["paid", "pending", "overdue"]
    last_payment_date: Optional[Timestamp] = None
    payment_history: List[PaymentRecord] = Field(default_factory=list)


class PlatformSettings(BaseModel):
    subscription_pricing: Dict[str, float]
    teacher_hourly_rate: float
    currency: str = "USD"
    timezone: str = "UTC"
    platform_name: str = "LexiLearn"
    platform_email: str = "support@lexilearn.com"


# ---------------------------------------------------------------- AI history sources

class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    created_at: Optional[Timestamp] = None
    audio_ref: Optional[str] = None


class VoiceSession(BaseModel):
    """Speaking-practice session with lexical analysis"""
    id: str
    student_id: str
    topic: Optional[str] = None
    created_at: Timestamp
    transcription: str = ""
    lexical_density: float = 0.0
    lexical_diversity: float = 0.0
    lexical_sophistication: float = 0.0
    advanced_words: List[str] = Field(default_factory=list)
    duration_seconds: int = Field(default=0, ge=0)
    audio_ref: Optional[str] = None
    conversation_id: Optional[str] = None


class TextConversation(BaseModel):
    """Turn-based chat with the AI tutor"""
    id: str
    student_id: str
    title: Optional[str] = None
    created_at: Timestamp
    updated_at: Optional[Timestamp] = None
    messages: List[Message] = Field(default_factory=list)


# ---------------------------------------------------------------- unified history

class VoiceHistoryRecord(BaseModel):
    """Voice session projected for the history list; carries full detail"""
    source_type: Literal["voice"] = "voice"
    id: str
    title: str
    display_date: Timestamp
    transcription: str = ""
    lexical_density: float = 0.0
    lexical_diversity: float = 0.0
    lexical_sophistication: float = 0.0
    advanced_words: List[str] = Field(default_factory=list)
    duration_seconds: int = 0
    audio_ref: Optional[str] = None
    conversation_id: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)  # linked conversation, if any


class TextHistoryRecord(BaseModel):
    """Text conversation projected for the history list; preview only"""
    source_type: Literal["text"] = "text"
    id: str
    title: str
    display_date: Timestamp
    preview: str = ""
    message_count: int = 0


class TextHistoryDetail(TextHistoryRecord):
    """Text history record after the second-phase fetch"""
    messages: List[Message] = Field(default_factory=list)


HistoryRecord = Annotated[Union[VoiceHistoryRecord, TextHistoryRecord], Field(discriminator="source_type")]


# ---------------------------------------------------------------- aggregates

class AdminStats(BaseModel):
    total_students: int
    total_teachers: int
    total_modules: int
    total_revenue: float
    pending_payments: int
    active_today: int


class StudentDashboardStats(BaseModel):
    student_id: str
    avg_lexical_density: float
    avg_lexical_diversity: float
    enrolled_modules_count: int
    current_streak: int
    total_study_hours: float
    total_lessons_completed: int
    achievements: List[str]
    voice_session_count: int
    conversation_count: int


class TeacherOverview(BaseModel):
    teacher_id: str
    students_count: int
    assigned_modules_count: int
    lessons_count: int
    resources_count: int
    completions_today: int = 0
    active_students: int = 0
    total_amount: float
    paid_amount: float
    pending_amount: float


class FinancialSummary(BaseModel):
    revenue_by_plan: Dict[str, float]
    active_subscriptions: int
    pending_subscriptions: int
    teacher_paid_total: float
    teacher_pending_total: float
