"""Pydantic schemas for the chat board."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ChatMessageCreate(BaseModel):
    sender_id: str
    text: str
    reply_to_id: Optional[str] = None


class ChatMessageOut(BaseModel):
    message_id: str
    sender_id: str
    sender_first_name: str
    sender_last_name: str
    text: str
    timestamp: datetime
    reply_to_id: Optional[str] = None

    model_config = {"from_attributes": True}


class ChatThreadOut(BaseModel):
    message: ChatMessageOut
    replies: list[ChatMessageOut] = []
