"""Collection names (schema-in-code).

Every entity type lives in exactly one named collection, persisted as a
single document. Use these constants so names stay consistent between the
seed generator, the queries and the mutation helpers.
"""

USERS = "users"
MODULES = "modules"
SUBSCRIPTIONS = "subscriptions"
TEACHER_PAYMENTS = "teacher_payments"
STUDENT_PROGRESS = "student_progress"  # map keyed by student id
VOICE_SESSIONS = "voice_sessions"
TEXT_CONVERSATIONS = "text_conversations"
PLATFORM_SETTINGS = "platform_settings"  # map

# Initialization marker written by the seed generator
SEED_STATE = "seed_state"

MAP_COLLECTIONS = {STUDENT_PROGRESS, PLATFORM_SETTINGS, SEED_STATE}


def empty_document(name: str):
    """Default value for a collection that has never been written"""
    return {} if name in MAP_COLLECTIONS else []
