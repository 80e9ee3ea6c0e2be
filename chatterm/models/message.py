from sqlalchemy import Column, String, Text, CheckConstraint
from chatterm.db.base_class import Base

class Message(Base):
    __tablename__ = "memory_messages"

    conversation_id = Column(String, primary_key=True)
    message_id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    role = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    extra_data = Column("metadata", Text, nullable=True)
    created_at = Column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="valid_role"),
    )
