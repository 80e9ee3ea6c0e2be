from sqlalchemy import Column, String, Text
from chatterm.db.base_class import Base

class Conversation(Base):
    __tablename__ = "memory_conversations"

    id = Column(String, primary_key=True)
    resource_id = Column(String, nullable=False, default="default")
    user_id = Column(String, nullable=False, index=True)
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    extra_data = Column("metadata", Text, nullable=False, default="{}")
    # ISO-8601 UTC text; fixed width keeps string order == time order
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
