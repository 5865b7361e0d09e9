"""ChatMessage ORM model: the ``chat_messages`` board."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from labx.database import Base


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    message_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sender_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    sender_first_name = Column(String(100), nullable=False, default="")
    sender_last_name = Column(String(100), nullable=False, default="")
    text = Column(String(2000), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    reply_to_id = Column(String(36), ForeignKey("chat_messages.message_id", ondelete="CASCADE"), nullable=True)
