# /aria-backend/app/services/context_service.py

from typing import Dict, List, Optional

from .database_service import DatabaseService
from ..models.chat_model import UploadedFile

DEFAULT_CONTEXT_LENGTH = 15


def assemble_context(
    db: DatabaseService,
    chat_id: str,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    instruction_preamble: Optional[str] = None,
    exclude_message_id: Optional[int] = None,
) -> List[Dict[str, str]]:
    """
    Builds the provider transcript from the tail of a chat.

    The newest `context_length` messages are fetched newest-first (so the
    bound cuts the head of the conversation, not the tail) and then reversed
    into chronological order. Error turns are replayed as assistant turns.
    """
    recent = db.get_recent_messages(chat_id, context_length, exclude_message_id=exclude_message_id)

    messages: List[Dict[str, str]] = []
    if instruction_preamble:
        messages.append({"role": "system", "content": instruction_preamble})

    for msg in reversed(recent):
        role = "assistant" if msg.role == "error" else msg.role
        messages.append({"role": role, "content": msg.content})
    return messages


def build_outbound_user_content(
    message: str,
    search_context: str = "",
    uploaded_file: Optional[UploadedFile] = None,
) -> str:
    """The current user turn as sent to the provider: raw text, then search block, then file."""
    content = message
    if search_context:
        content += search_context
    if uploaded_file:
        content += f"\n\n[Uploaded file: {uploaded_file.name}]:\n{uploaded_file.content}"
    return content
