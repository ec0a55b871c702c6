# /aria-backend/app/models/chat_model.py

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

MessageRole = Literal["user", "assistant", "system", "error"]


class WebSearchResult(BaseModel):
    """One organic search hit folded into a prompt and kept for citations."""
    title: str = ""
    url: str = ""
    snippet: str = ""


class UploadedFile(BaseModel):
    """A text file the client read locally and ships inline with the message."""
    name: str = Field(..., min_length=1)
    content: str = ""


# --- Message exchange ---

class SendMessageRequest(BaseModel):
    """
    Request body for POST /api/chat/message.
    Fields are camelCase to match the JavaScript client.
    """
    chatId: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    mode: Optional[str] = Field(None, description="Server-side preset id, e.g. 'coder' or 'precise'.")
    contextLength: int = Field(15, gt=0, description="How many prior messages to send as context.")
    uploadedFile: Optional[UploadedFile] = None
    systemPrompt: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0, le=2)
    maxTokens: Optional[int] = Field(None, gt=0)
    topP: Optional[float] = Field(None, ge=0, le=1)
    frequencyPenalty: Optional[float] = Field(None, ge=-2, le=2)
    presencePenalty: Optional[float] = Field(None, ge=-2, le=2)

    class Config:
        json_schema_extra = {
            "example": {
                "chatId": "chat_1_3f9a0c2b7d41",
                "message": "What's the latest news on interest rates?",
                "mode": "default",
                "contextLength": 15,
            }
        }


class MessageOut(BaseModel):
    id: int
    role: MessageRole
    content: str
    timestamp: Optional[datetime] = None
    webSearchResults: Optional[List[WebSearchResult]] = None
    downloadUrl: Optional[str] = None
    downloadFilename: Optional[str] = None


class SendMessageResponse(BaseModel):
    success: bool = True
    userMessage: MessageOut
    assistantMessage: MessageOut


# --- Chat CRUD ---

class CreateChatRequest(BaseModel):
    title: str = Field(..., min_length=1)


class DeleteChatRequest(BaseModel):
    chatId: str = Field(..., min_length=1)


class ChatSummary(BaseModel):
    """A chat as it appears in the history sidebar."""
    id: str
    title: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    message_count: int = 0
    last_message_time: Optional[datetime] = None


class CreateChatResponse(BaseModel):
    success: bool = True
    chat: ChatSummary


class ChatListResponse(BaseModel):
    chats: List[ChatSummary]


class ChatDetail(BaseModel):
    id: str
    title: str
    messages: List[MessageOut]


class ChatMessagesResponse(BaseModel):
    chat: ChatDetail


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ModeListResponse(BaseModel):
    modes: List[str]
