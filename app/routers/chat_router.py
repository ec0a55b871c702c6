# /aria-backend/app/routers/chat_router.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from typing import Optional

# Import the services and the Pydantic models
from ..core.deps import get_current_active_user
from ..db.models.user_models import User
from ..models import chat_model, file_model
from ..services import chat_service, mode_service
from ..services.database_service import DatabaseService, get_db_service
from ..services.provider_orchestrator import ProviderOrchestrator, get_provider_orchestrator
from ..services.search_service import SearchService, get_search_service
from ..services.storage_service import BlobStore, get_blob_store

router = APIRouter()

CHAT_NOT_FOUND = "Chat not found or access denied"


# --- CHAT MANAGEMENT ---

@router.post(
    "/create",
    response_model=chat_model.CreateChatResponse,
    summary="Create a New Chat",
)
def create_chat(
    request: chat_model.CreateChatRequest,
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
):
    chat = chat_service.create_chat(current_user.id, request, db)
    return {"success": True, "chat": chat}


@router.get(
    "/list",
    response_model=chat_model.ChatListResponse,
    summary="List Chats",
    description="All of the caller's chats with message counts, most recently active first.",
)
def list_chats(
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
):
    return {"chats": chat_service.list_chats(current_user.id, db)}


@router.get(
    "/messages",
    response_model=chat_model.ChatMessagesResponse,
    summary="Get a Chat with its Messages",
)
def get_chat_messages(
    chatId: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
):
    if not chatId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Chat ID is required")
    details = chat_service.get_chat_messages_logic(chatId, current_user.id, db)
    if not details:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)
    return {"chat": details}


@router.delete(
    "/delete",
    response_model=chat_model.SuccessResponse,
    summary="Delete a Chat",
    description="Permanently deletes a chat and all of its messages.",
)
def delete_chat(
    request: chat_model.DeleteChatRequest,
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
):
    if not chat_service.delete_chat_logic(request.chatId, current_user.id, db):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)
    return {"success": True}


@router.delete(
    "/clear",
    response_model=chat_model.SuccessResponse,
    summary="Clear Chat History",
)
def clear_chats(
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
):
    chat_service.clear_chats_logic(current_user.id, db)
    return {"success": True, "message": "All chat history cleared successfully"}


@router.get("/modes", response_model=chat_model.ModeListResponse, summary="List Chat Modes")
def list_modes(current_user: User = Depends(get_current_active_user)):
    return {"modes": mode_service.list_modes()}


# --- MESSAGE EXCHANGE ---

@router.post(
    "/message",
    response_model=chat_model.SendMessageResponse,
    summary="Send a Message",
    description="Persists the user's message, asks the AI provider for a reply and persists the reply.",
)
async def send_message(
    request: chat_model.SendMessageRequest,
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
    orchestrator: ProviderOrchestrator = Depends(get_provider_orchestrator),
    search_service: SearchService = Depends(get_search_service),
):
    result = await chat_service.send_message(current_user.id, request, db, orchestrator, search_service)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)
    if result.error:
        # The error turn is already in the chat history; the client only needs the text.
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": result.error})
    return {
        "success": True,
        "userMessage": result.user_message,
        "assistantMessage": result.assistant_message,
    }


@router.post(
    "/messages/{message_id}/download",
    response_model=file_model.MessageDownloadResponse,
    summary="Export a Message as a Markdown File",
)
def download_message(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    db: DatabaseService = Depends(get_db_service),
    store: BlobStore = Depends(get_blob_store),
):
    download = chat_service.export_message_download(message_id, current_user.id, db, store)
    if not download:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found or access denied")
    return download
