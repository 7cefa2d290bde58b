"""Wire models for the chat proxy."""

from pydantic import BaseModel


class ChatRequest(BaseModel):
    message: str = ""


class ChatReply(BaseModel):
    reply: str


class ChatError(BaseModel):
    error: str
