"""
Unified AI history: voice-practice sessions and text conversations merged
into one list, newest first.

The list view is derived on every call and never stored. Voice records carry
everything needed to show them; text records carry only a preview, and their
messages are fetched separately with `view_detail`.
"""
import logging
from typing import Any, Dict, List, Optional

from lexilearn import collection_names as names
from lexilearn.config import settings
from lexilearn.crud.history import delete_conversation, delete_voice_session, get_conversation
from lexilearn.errors import NotFoundError
from lexilearn.schemas import (
    HistoryRecord, TextConversation, TextHistoryDetail, TextHistoryRecord,
    VoiceHistoryRecord, VoiceSession
)
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)

DEFAULT_VOICE_TITLE = "General Practice"
DEFAULT_TEXT_TITLE = "Untitled Conversation"


def _preview(conversation: TextConversation, length: Optional[int] = None) -> str:
    """Snippet of the most recent message"""
    if length is None:
        length = settings.preview_length
    if not conversation.messages:
        return ""
    content = conversation.messages[-1].content
    return content[:length] + ("..." if len(content) > length else "")


def project_voice(session: VoiceSession, linked: Optional[TextConversation] = None) -> VoiceHistoryRecord:
    return VoiceHistoryRecord(
        id=session.id,
        title=session.topic or DEFAULT_VOICE_TITLE,
        display_date=session.created_at,
        transcription=session.transcription,
        lexical_density=session.lexical_density,
        lexical_diversity=session.lexical_diversity,
        lexical_sophistication=session.lexical_sophistication,
        advanced_words=session.advanced_words,
        duration_seconds=session.duration_seconds,
        audio_ref=session.audio_ref,
        conversation_id=session.conversation_id,
        messages=linked.messages if linked else [],
    )


def project_text(conversation: TextConversation) -> TextHistoryRecord:
    return TextHistoryRecord(
        id=conversation.id,
        title=conversation.title or DEFAULT_TEXT_TITLE,
        display_date=conversation.created_at,
        preview=_preview(conversation),
        message_count=len(conversation.messages),
    )


def list_history(store: CollectionStore, student_id: str) -> List[HistoryRecord]:
    """
    Voice and text records of one student, most recent first.

    Records sharing a timestamp keep their source order (voice before text,
    then insertion order within each collection).
    """
    all_conversations = {c["id"]: TextConversation(**c) for c in store.read(names.TEXT_CONVERSATIONS)}

    records: List[HistoryRecord] = []
    for doc in store.read(names.VOICE_SESSIONS):
        if doc["student_id"] != student_id:
            continue
        session = VoiceSession(**doc)
        records.append(project_voice(session, all_conversations.get(session.conversation_id)))
    for conversation in all_conversations.values():
        if conversation.student_id == student_id:
            records.append(project_text(conversation))

    # sorted() is stable with reverse=True, so ties keep insertion order
    return sorted(records, key=lambda r: r.display_date, reverse=True)


def view_detail(store: CollectionStore, record: HistoryRecord) -> HistoryRecord:
    """
    Full detail for a history record.

    Voice records and text records that were already expanded are
    returned as they are. Other text records need their message
    list fetched; a conversation deleted in the meantime raises NotFoundError.
    """
    if record.source_type == "voice" or isinstance(record, TextHistoryDetail):
        return record
    if record.source_type == "text":
        conversation = get_conversation(store, record.id)
        if conversation is None:
            raise NotFoundError(names.TEXT_CONVERSATIONS, record.id)
        return TextHistoryDetail(
            **record.model_dump(exclude={"source_type", "preview", "message_count"}),
            preview=_preview(conversation),
            message_count=len(conversation.messages),
            messages=conversation.messages,
        )
    raise ValueError(f"Unknown history source type {record.source_type!r}")


def delete_history_record(store: CollectionStore, record: HistoryRecord) -> bool:
    """
    Delete the source record behind a history entry.

    Only the collection matching `source_type` is touched.

    Returns:
        False when the record was already gone
    """
    if record.source_type == "voice":
        deleted = delete_voice_session(store, record.id)
    elif record.source_type == "text":
        deleted = delete_conversation(store, record.id)
    else:
        raise ValueError(f"Unknown history source type {record.source_type!r}")

    if not deleted:
        logger.info("Nothing to delete for %s record %s", record.source_type, record.id)
    return deleted


def find_record(store: CollectionStore, student_id: str, record_id: str) -> HistoryRecord:
    """Look up one entry of a student's history by id"""
    for record in list_history(store, student_id):
        if record.id == record_id:
            return record
    raise NotFoundError("history", record_id)


def history_as_dicts(records: List[HistoryRecord]) -> List[Dict[str, Any]]:
    """JSON-shaped list for the presentation layer"""
    return [r.model_dump(mode="json") for r in records]
