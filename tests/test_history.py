from datetime import datetime, timezone

import pytest

from lexilearn import collection_names as names
from lexilearn.crud import (
    append_message, create_user, delete_conversation, get_conversation, save_conversation, save_voice_session
)
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.history import _preview, delete_history_record, find_record, history_as_dicts, list_history, view_detail
from lexilearn.schemas import TextHistoryDetail, VoiceHistoryRecord


@pytest.fixture
def student(store):
    create_user(store, {"id": "student_a", "display_name": "Ana Ruiz", "email": "ana@student.com", "role": "student"})
    create_user(store, {"id": "student_b", "display_name": "Ben Ito", "email": "ben@student.com", "role": "student"})
    return "student_a"


@pytest.fixture
def history(store, student):
    save_voice_session(store, {
        "id": "voice_1",
        "student_id": student,
        "topic": "Travel",
        "created_at": datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc),
        "transcription": "I would like to book a ticket",
        "lexical_density": 48.5,
        "lexical_diversity": 71.0,
        "conversation_id": "conv_1",
    })
    save_conversation(store, {
        "id": "conv_1",
        "student_id": student,
        "title": "Booking tickets",
        "created_at": datetime(2024, 1, 12, 15, 30, tzinfo=timezone.utc),
        "messages": [
            {"role": "user", "content": "How do I ask for a window seat?"},
            {"role": "assistant", "content": "You can say: could I have a window seat, please?"},
        ],
    })
    return store


def test_newest_record_comes_first(history, student):
    records = list_history(history, student)

    assert [(r.source_type, r.id) for r in records] == [("text", "conv_1"), ("voice", "voice_1")]


def test_voice_record_embeds_linked_messages(history, student):
    voice = list_history(history, student)[1]

    assert isinstance(voice, VoiceHistoryRecord)
    assert voice.title == "Travel"
    assert [m.role for m in voice.messages] == ["user", "assistant"]


def test_text_record_carries_preview_only(history, student):
    text = list_history(history, student)[0]

    assert text.message_count == 2
    assert text.preview == "You can say: could I have a window seat, please?"
    assert not hasattr(text, "messages")


def test_long_preview_is_truncated(store, student):
    save_conversation(store, {
        "id": "conv_long",
        "student_id": student,
        "created_at": datetime(2024, 2, 1, tzinfo=timezone.utc),
        "messages": [{"role": "assistant", "content": "x" * 200}],
    })

    record = list_history(store, student)[0]
    assert record.preview == "x" * 150 + "..."
    assert record.title == "Untitled Conversation"


def test_other_students_are_excluded(history):
    assert list_history(history, "student_b") == []


def test_equal_timestamps_keep_voice_before_text(store, student):
    moment = datetime(2024, 3, 1, tzinfo=timezone.utc)
    save_conversation(store, {"id": "conv_t", "student_id": student, "created_at": moment})
    save_voice_session(store, {"id": "voice_t", "student_id": student, "created_at": moment})

    assert [r.id for r in list_history(store, student)] == ["voice_t", "conv_t"]


def test_naive_and_aware_timestamps_sort_together(store, student):
    save_voice_session(store, {"id": "voice_naive", "student_id": student, "created_at": datetime(2024, 1, 5, 8, 0)})
    save_conversation(store, {
        "id": "conv_aware", "student_id": student,
        "created_at": datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc),
    })

    assert [r.id for r in list_history(store, student)] == ["conv_aware", "voice_naive"]


def test_view_detail_fetches_text_messages(history, student):
    text = find_record(history, student, "conv_1")

    detail = view_detail(history, text)

    assert isinstance(detail, TextHistoryDetail)
    assert len(detail.messages) == 2
    assert detail.display_date == text.display_date


def test_view_detail_returns_voice_unchanged(history, student):
    voice = find_record(history, student, "voice_1")

    assert view_detail(history, voice) is voice


def test_view_detail_of_deleted_conversation(history, student):
    text = find_record(history, student, "conv_1")
    delete_conversation(history, "conv_1")

    with pytest.raises(NotFoundError):
        view_detail(history, text)


def test_deleting_voice_leaves_conversations_alone(history, student):
    voice = find_record(history, student, "voice_1")

    assert delete_history_record(history, voice) is True
    assert len(history.read(names.TEXT_CONVERSATIONS)) == 1
    assert history.read(names.VOICE_SESSIONS) == []


def test_deleting_text_leaves_voice_sessions_alone(history, student):
    text = find_record(history, student, "conv_1")

    assert delete_history_record(history, text) is True
    assert len(history.read(names.VOICE_SESSIONS)) == 1
    assert delete_history_record(history, text) is False


def test_find_record_unknown_id(history, student):
    with pytest.raises(NotFoundError):
        find_record(history, student, "nope")


def test_append_message_updates_preview(history, student):
    append_message(history, "conv_1", {"role": "user", "content": "Thanks!"})

    text = find_record(history, student, "conv_1")
    assert text.message_count == 3
    assert text.preview == "Thanks!"
    with pytest.raises(NotFoundError):
        append_message(history, "conv_missing", {"role": "user", "content": "hi"})


def test_saving_same_id_replaces_record(history, student):
    save_voice_session(history, {
        "id": "voice_1", "student_id": student,
        "created_at": datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc),
        "lexical_density": 52.0,
    })

    sessions = history.read(names.VOICE_SESSIONS)
    assert len(sessions) == 1
    assert sessions[0]["lexical_density"] == 52.0


def test_history_for_unknown_student_is_rejected(store, student):
    with pytest.raises(MalformedInputError):
        save_voice_session(store, {"student_id": "ghost"})
    with pytest.raises(MalformedInputError):
        save_conversation(store, {"student_id": "student_a", "messages": [{"role": "system", "content": "x"}]})


def test_history_as_dicts_is_json_shaped(history, student):
    rows = history_as_dicts(list_history(history, student))

    assert rows[0]["source_type"] == "text"
    assert rows[1]["display_date"].startswith("2024-01-10")


def test_view_detail_twice_returns_expanded_record(history, student):
    detail = view_detail(history, find_record(history, student, "conv_1"))

    again = view_detail(history, detail)

    assert again is detail
    assert len(again.messages) == 2


def test_zero_preview_length_is_respected(history):
    conversation = get_conversation(history, "conv_1")

    assert _preview(conversation, 0) == "..."
    assert _preview(conversation, 3) == "You..."
