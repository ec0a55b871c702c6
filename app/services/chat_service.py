# /aria-backend/app/services/chat_service.py

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from .database_service import DatabaseService
from .context_service import assemble_context, build_outbound_user_content
from .llm_providers import CompletionParams
from .mode_service import get_mode_config
from .provider_orchestrator import ProviderOrchestrator
from .realtime_intent import needs_real_time_info
from .search_service import SearchService, format_search_context
from .storage_service import BlobStore, store_markdown
from ..db.models.chat_models import Chat, Message
from ..models import chat_model

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50
# Persisted messages in a chat right after its first exchange.
FIRST_EXCHANGE_MESSAGE_COUNT = 2


# --- Helper Functions ---

def _generate_chat_id(user_id: int) -> str:
    return f"chat_{user_id}_{uuid.uuid4().hex[:12]}"


def _generate_chat_title(first_message: str) -> str:
    if len(first_message) > TITLE_MAX_LENGTH:
        return first_message[:TITLE_MAX_LENGTH] + "..."
    return first_message


def _serialize_message(msg: Message) -> Dict:
    return {
        "id": msg.id,
        "role": msg.role,
        "content": msg.content,
        "timestamp": msg.created_at,
        "webSearchResults": msg.web_search_results or None,
        "downloadUrl": msg.download_url,
        "downloadFilename": msg.download_filename,
    }


def _serialize_chat(chat: Chat, message_count: int = 0, last_message_time=None) -> Dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "created_at": chat.created_at,
        "updated_at": chat.updated_at,
        "last_message_at": chat.last_message_at,
        "message_count": message_count,
        "last_message_time": last_message_time,
    }


def _resolve_params(request: chat_model.SendMessageRequest, mode) -> CompletionParams:
    return CompletionParams(
        model=mode.model,
        temperature=request.temperature if request.temperature is not None else mode.temperature,
        max_tokens=request.maxTokens or 2000,
        top_p=request.topP if request.topP is not None else 1.0,
        frequency_penalty=request.frequencyPenalty or 0.0,
        presence_penalty=request.presencePenalty or 0.0,
    )


# --- Chat CRUD ---

def create_chat(user_id: int, request: chat_model.CreateChatRequest, db: DatabaseService) -> Dict:
    """Creates an empty chat owned by the user."""
    chat = db.create_chat({
        "id": _generate_chat_id(user_id),
        "user_id": user_id,
        "title": request.title,
    })
    return _serialize_chat(chat)


def list_chats(user_id: int, db: DatabaseService) -> List[Dict]:
    return [_serialize_chat(chat, count, last) for chat, count, last in db.get_chats_with_stats(user_id)]


def get_chat_messages_logic(chat_id: str, user_id: int, db: DatabaseService) -> Optional[Dict]:
    """Full message history of an owned chat, or None if the caller does not own it."""
    chat = db.get_chat_for_user(chat_id, user_id)
    if not chat:
        return None
    messages = db.get_messages_for_chat(chat_id, user_id)
    return {
        "id": chat.id,
        "title": chat.title,
        "messages": [_serialize_message(m) for m in messages],
    }


def delete_chat_logic(chat_id: str, user_id: int, db: DatabaseService) -> bool:
    """Business logic to safely delete a chat and, by cascade, its messages."""
    chat = db.get_chat_for_user(chat_id, user_id)
    if not chat:
        return False
    db.delete_chat(chat)
    return True


def clear_chats_logic(user_id: int, db: DatabaseService) -> int:
    deleted = db.delete_chats_by_user_id(user_id)
    logger.info("Cleared %d chats for user %s", deleted, user_id)
    return deleted


# --- Message Turn ---

@dataclass
class MessageTurnResult:
    user_message: Dict
    assistant_message: Dict
    error: Optional[str] = None


def _maybe_rewrite_title(chat_id: str, first_message: str, db: DatabaseService):
    # Not atomic: two concurrent first exchanges can both miss or both hit the count.
    if db.count_chat_messages(chat_id) == FIRST_EXCHANGE_MESSAGE_COUNT:
        new_title = _generate_chat_title(first_message)
        db.update_chat_title(chat_id, new_title)
        logger.info("Chat %s retitled after first exchange", chat_id)


async def send_message(
    user_id: int,
    request: chat_model.SendMessageRequest,
    db: DatabaseService,
    orchestrator: ProviderOrchestrator,
    search_service: SearchService,
) -> Optional[MessageTurnResult]:
    """
    Runs one user turn end to end. Returns None if the chat is not owned by
    the user; in that case nothing has been written.
    """
    chat = db.get_chat_for_user(request.chatId, user_id)
    if not chat:
        return None

    user_message = db.add_chat_message({
        "chat_id": chat.id,
        "user_id": user_id,
        "role": "user",
        "content": request.message,
    })

    mode = get_mode_config(request.mode, default_model=orchestrator.config.primary_model)
    preamble = request.systemPrompt or mode.system_prompt or None
    messages = assemble_context(
        db,
        chat.id,
        context_length=request.contextLength,
        instruction_preamble=preamble,
        exclude_message_id=user_message.id,
    )

    web_search_results: List[chat_model.WebSearchResult] = []
    search_context = ""
    if needs_real_time_info(request.message):
        web_search_results = await search_service.search(request.message)
        search_context = format_search_context(request.message, web_search_results)

    messages.append({
        "role": "user",
        "content": build_outbound_user_content(request.message, search_context, request.uploadedFile),
    })
    logger.info("Sending %d messages to AI provider for chat %s", len(messages), chat.id)

    outcome = await orchestrator.complete(messages, _resolve_params(request, mode))

    if outcome.succeeded:
        outbound_record = {
            "chat_id": chat.id,
            "user_id": user_id,
            "role": "assistant",
            "content": outcome.content,
            "web_search_results": [r.model_dump() for r in web_search_results] or None,
        }
    else:
        outbound_record = {
            "chat_id": chat.id,
            "user_id": user_id,
            "role": "error",
            "content": outcome.persisted_error,
        }
    outbound_message = db.add_chat_message(outbound_record)

    _maybe_rewrite_title(chat.id, request.message, db)

    return MessageTurnResult(
        user_message=_serialize_message(user_message),
        assistant_message=_serialize_message(outbound_message),
        error=None if outcome.succeeded else outcome.client_error,
    )


# --- Message Export ---

def export_message_download(message_id: int, user_id: int, db: DatabaseService, store: BlobStore) -> Optional[Dict]:
    """
    Publishes a message's content as a markdown file the first time it is
    requested and remembers the link on the message. Returns None if the
    message is not in one of the caller's chats.
    """
    message = db.get_message_for_user(message_id, user_id)
    if not message:
        return None
    if message.download_url:
        return {"downloadUrl": message.download_url, "filename": message.download_filename}

    filename = f"aria-response-{int(time.time() * 1000)}.md"
    blob = store_markdown(store, str(user_id), message.content, filename)
    db.set_message_download(message, blob.download_url, blob.filename)
    return {"downloadUrl": blob.download_url, "filename": blob.filename}
