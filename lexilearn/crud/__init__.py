from lexilearn.crud.user import (
    create_user,
    get_user,
    list_users,
    update_profile,
    change_role,
    touch_last_active,
    delete_user
)
from lexilearn.crud.module import (
    create_module,
    get_module,
    list_modules,
    update_module,
    delete_module,
    assign_teacher,
    unassign_teacher,
    add_lesson,
    update_lesson,
    delete_lesson,
    add_resource,
    update_resource,
    delete_resource
)
from lexilearn.crud.progress import get_progress, enroll_student, complete_lesson
from lexilearn.crud.payment import (
    get_platform_settings,
    update_platform_settings,
    get_subscription,
    create_subscription,
    activate_subscription,
    get_teacher_payment,
    log_teacher_hours,
    record_teacher_payment
)
from lexilearn.crud.history import (
    save_voice_session,
    list_voice_sessions,
    delete_voice_session,
    save_conversation,
    get_conversation,
    list_conversations,
    append_message,
    delete_conversation
)

__all__ = [
    "create_user",
    "get_user",
    "list_users",
    "update_profile",
    "change_role",
    "touch_last_active",
    "delete_user",
    "create_module",
    "get_module",
    "list_modules",
    "update_module",
    "delete_module",
    "assign_teacher",
    "unassign_teacher",
    "add_lesson",
    "update_lesson",
    "delete_lesson",
    "add_resource",
    "update_resource",
    "delete_resource",
    "get_progress",
    "enroll_student",
    "complete_lesson",
    "get_platform_settings",
    "update_platform_settings",
    "get_subscription",
    "create_subscription",
    "activate_subscription",
    "get_teacher_payment",
    "log_teacher_hours",
    "record_teacher_payment",
    "save_voice_session",
    "list_voice_sessions",
    "delete_voice_session",
    "save_conversation",
    "get_conversation",
    "list_conversations",
    "append_message",
    "delete_conversation",
]
