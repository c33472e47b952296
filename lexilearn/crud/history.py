import logging
from typing import Any, Dict, List, Optional, Union

from lexilearn import collection_names as names
from lexilearn.crud.base import find_index, new_id, to_document, utcnow, validate
from lexilearn.errors import MalformedInputError, NotFoundError
from lexilearn.schemas import Message, TextConversation, VoiceSession
from lexilearn.store import CollectionStore

logger = logging.getLogger(__name__)


def _require_student(store: CollectionStore, student_id: str) -> None:
    users = store.read(names.USERS)
    i = find_index(users, student_id)
    if i is None or users[i]["role"] != "student":
        raise MalformedInputError(f"Unknown student {student_id}")


def _upsert(store: CollectionStore, name: str, document: Dict[str, Any]) -> bool:
    """Insert or replace by id; returns True when an existing record was replaced"""
    with store.locked(name):
        docs = store.read(name)
        i = find_index(docs, document["id"])
        if i is None:
            docs.append(document)
        else:
            docs[i] = document
        store.write(name, docs)
    return i is not None


def _remove(store: CollectionStore, name: str, record_id: str) -> bool:
    with store.locked(name):
        docs = store.read(name)
        kept = [d for d in docs if d["id"] != record_id]
        if len(kept) == len(docs):
            return False
        store.write(name, kept)
    logger.info("Deleted %s from %s", record_id, name)
    return True


# ------------------------------------------------------------------ voice sessions

def save_voice_session(store: CollectionStore, payload: Union[VoiceSession, Dict[str, Any]]) -> VoiceSession:
    """
    Store a voice session delivered by the speech-analysis service.

    Re-sending a session with the same id replaces the earlier copy.
    """
    data = dict(payload) if isinstance(payload, dict) else payload.model_dump()
    data.setdefault("id", new_id("voice"))
    data.setdefault("created_at", utcnow())
    session = validate(VoiceSession, data)
    _require_student(store, session.student_id)
    _upsert(store, names.VOICE_SESSIONS, to_document(session))
    return session


def list_voice_sessions(store: CollectionStore, student_id: str) -> List[VoiceSession]:
    return [VoiceSession(**d) for d in store.read(names.VOICE_SESSIONS) if d["student_id"] == student_id]


def delete_voice_session(store: CollectionStore, session_id: str) -> bool:
    return _remove(store, names.VOICE_SESSIONS, session_id)


# ------------------------------------------------------------------ text conversations

def save_conversation(store: CollectionStore, payload: Union[TextConversation, Dict[str, Any]]) -> TextConversation:
    """Store a chat conversation; same-id conversations are replaced"""
    data = dict(payload) if isinstance(payload, dict) else payload.model_dump()
    data.setdefault("id", new_id("conv"))
    data.setdefault("created_at", utcnow())
    conversation = validate(TextConversation, data)
    _require_student(store, conversation.student_id)
    _upsert(store, names.TEXT_CONVERSATIONS, to_document(conversation))
    return conversation


def get_conversation(store: CollectionStore, conversation_id: str) -> Optional[TextConversation]:
    """Get a conversation with its full message list"""
    docs = store.read(names.TEXT_CONVERSATIONS)
    i = find_index(docs, conversation_id)
    return TextConversation(**docs[i]) if i is not None else None


def list_conversations(store: CollectionStore, student_id: str) -> List[TextConversation]:
    return [TextConversation(**d) for d in store.read(names.TEXT_CONVERSATIONS) if d["student_id"] == student_id]


def append_message(
    store: CollectionStore,
    conversation_id: str,
    message: Union[Message, Dict[str, Any]]
) -> TextConversation:
    """Add one message to the end of a conversation"""
    data = dict(message) if isinstance(message, dict) else message.model_dump()
    now = utcnow()
    data.setdefault("created_at", now)
    msg = validate(Message, data)

    with store.locked(names.TEXT_CONVERSATIONS):
        docs = store.read(names.TEXT_CONVERSATIONS)
        i = find_index(docs, conversation_id)
        if i is None:
            raise NotFoundError(names.TEXT_CONVERSATIONS, conversation_id)
        docs[i]["messages"].append(to_document(msg))
        docs[i]["updated_at"] = now.isoformat()
        conversation = validate(TextConversation, docs[i])
        store.write(names.TEXT_CONVERSATIONS, docs)
    return conversation


def delete_conversation(store: CollectionStore, conversation_id: str) -> bool:
    return _remove(store, names.TEXT_CONVERSATIONS, conversation_id)
