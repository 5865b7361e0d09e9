"""Chat board: flat messages with one level of replies."""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from labx.errors import AuthorizationError, NotFoundError, ValidationError
from labx.models.chat_message import ChatMessage
from labx.services.auth_service import get_user

logger = logging.getLogger(__name__)


def post_message(db: Session, sender_id: str, text: str, reply_to_id: Optional[str] = None) -> ChatMessage:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Message text cannot be empty")

    sender = get_user(db, sender_id)
    if reply_to_id:
        parent = db.query(ChatMessage).filter(ChatMessage.message_id == reply_to_id).first()
        if not parent:
            raise NotFoundError("Message being replied to does not exist")
        # Replies attach to the thread root
        reply_to_id = parent.reply_to_id or parent.message_id

    message = ChatMessage(
        sender_id=sender.user_id,
        sender_first_name=sender.first_name,
        sender_last_name=sender.last_name,
        text=text,
        timestamp=datetime.now(timezone.utc),
        reply_to_id=reply_to_id,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Chat message %s posted by %s", message.message_id, sender_id)
    return message


def delete_message(db: Session, message_id: str, requester_id: str) -> None:
    """The sender or any staff member may delete; replies go with their root."""
    message = db.query(ChatMessage).filter(ChatMessage.message_id == message_id).first()
    if not message:
        raise NotFoundError("Message not found")

    requester = get_user(db, requester_id)
    if message.sender_id != requester.user_id and not requester.is_staff:
        raise AuthorizationError("Only the sender or staff may delete this message")

    for reply in db.query(ChatMessage).filter(ChatMessage.reply_to_id == message_id).all():
        db.delete(reply)
    db.delete(message)
    db.commit()
    logger.info("Chat message %s deleted by %s", message_id, requester_id)


def list_threads(db: Session) -> list[dict[str, Any]]:
    """Root messages in time order, each with its replies in time order."""
    messages = db.query(ChatMessage).order_by(ChatMessage.timestamp).all()
    replies = defaultdict(list)
    roots = []
    for msg in messages:
        if msg.reply_to_id is None:
            roots.append(msg)
        else:
            replies[msg.reply_to_id].append(msg)
    return [{"message": root, "replies": replies.get(root.message_id, [])} for root in roots]
