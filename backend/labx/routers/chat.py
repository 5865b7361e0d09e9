"""Chat board API routes."""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from labx.database import get_db
from labx.schemas.chat import ChatMessageCreate, ChatMessageOut, ChatThreadOut
from labx.services import chat_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[ChatThreadOut])
def list_threads(db: Session = Depends(get_db)):
    return chat_service.list_threads(db)


@router.post("/", response_model=ChatMessageOut, status_code=status.HTTP_201_CREATED)
def post_message(payload: ChatMessageCreate, db: Session = Depends(get_db)):
    return chat_service.post_message(db, payload.sender_id, payload.text, payload.reply_to_id)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(message_id: str, requester_id: str = Query(...), db: Session = Depends(get_db)):
    chat_service.delete_message(db, message_id, requester_id)
