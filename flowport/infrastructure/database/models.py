"""
SQLAlchemy ORM Models for Flowport.

One table per tenant entity. Attribute names match the domain dataclass
fields so repositories can copy values across without per-column code.
JSON-valued columns are stored as TEXT.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    Index,
)
from sqlalchemy.orm import declarative_base
from datetime import datetime
import json

Base = declarative_base()


# ═══════════════════════════════════════════════════════════════════════════════
# Helper for JSON serialization
# ═══════════════════════════════════════════════════════════════════════════════

def json_serializer(obj):
    """Serialize object to JSON string."""
    if obj is None:
        return None
    return json.dumps(obj)


def json_deserializer(s):
    """Deserialize JSON string to object."""
    if s is None:
        return None
    return json.loads(s)


class TenantColumnsMixin:
    """Identity and ownership columns shared by every tenant table."""

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=True, index=True)
    organization_id = Column(String(64), nullable=True, index=True)
    created_date = Column(DateTime, default=datetime.utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Flows and Conversations
# ═══════════════════════════════════════════════════════════════════════════════

class ChatFlowORM(TenantColumnsMixin, Base):
    """ORM model for chat_flow table (all flow types)."""
    
    __tablename__ = 'chat_flow'
    
    name = Column(String(255), nullable=False, default="")
    flow_data = Column(Text, nullable=False, default="{}")  # JSON: flow definition
    type = Column(String(32), nullable=False, default="CHATFLOW")
    deployed = Column(Boolean, nullable=True)
    is_public = Column(Boolean, nullable=True)
    apikey_id = Column(String(64), nullable=True)
    chatbot_config = Column(Text, nullable=True)  # JSON
    api_config = Column(Text, nullable=True)  # JSON
    category = Column(Text, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    
    __table_args__ = (
        Index('idx_chat_flow_owner_type', 'organization_id', 'user_id', 'type'),
    )


class ChatORM(TenantColumnsMixin, Base):
    """ORM model for chat table."""
    
    __tablename__ = 'chat'
    
    chatflow_id = Column(String(64), nullable=True, index=True)
    title = Column(Text, nullable=True)
    owner_id = Column(String(64), nullable=True)


class ChatMessageORM(TenantColumnsMixin, Base):
    """ORM model for chat_message table."""
    
    __tablename__ = 'chat_message'
    
    role = Column(String(32), nullable=False, default="userMessage")
    chatflow_id = Column(String(64), nullable=True, index=True)
    chat_id = Column(String(64), nullable=True, index=True)
    content = Column(Text, nullable=False, default="")
    execution_id = Column(String(64), nullable=True)
    chat_type = Column(String(32), nullable=False, default="INTERNAL")
    session_id = Column(String(255), nullable=True)
    memory_type = Column(String(255), nullable=True)
    source_documents = Column(Text, nullable=True)  # JSON
    used_tools = Column(Text, nullable=True)  # JSON


class ChatMessageFeedbackORM(TenantColumnsMixin, Base):
    """ORM model for chat_message_feedback table."""
    
    __tablename__ = 'chat_message_feedback'
    
    chatflow_id = Column(String(64), nullable=True, index=True)
    chat_id = Column(String(64), nullable=True)
    message_id = Column(String(64), nullable=True, index=True)
    rating = Column(String(32), nullable=True)
    content = Column(Text, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Assistants, Templates, Tools, Variables
# ═══════════════════════════════════════════════════════════════════════════════

class AssistantORM(TenantColumnsMixin, Base):
    """ORM model for assistant table (CUSTOM, OPENAI, AZURE)."""
    
    __tablename__ = 'assistant'
    
    details = Column(Text, nullable=False, default="{}")  # JSON
    credential = Column(String(64), nullable=True)
    icon_src = Column(String(255), nullable=True)
    type = Column(String(32), nullable=False, default="CUSTOM")
    updated_date = Column(DateTime, nullable=True)


class CustomTemplateORM(TenantColumnsMixin, Base):
    """ORM model for custom_template table."""
    
    __tablename__ = 'custom_template'
    
    name = Column(String(255), nullable=False, default="")
    flow_data = Column(Text, nullable=False, default="{}")  # JSON: flow definition
    description = Column(Text, nullable=True)
    badge = Column(String(255), nullable=True)
    framework = Column(String(255), nullable=True)
    usecases = Column(Text, nullable=True)  # JSON: list of strings
    type = Column(String(32), nullable=True)
    updated_date = Column(DateTime, nullable=True)


class ToolORM(TenantColumnsMixin, Base):
    """ORM model for tool table."""
    
    __tablename__ = 'tool'
    
    name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    color = Column(String(32), nullable=True)
    icon_src = Column(String(255), nullable=True)
    schema = Column(Text, nullable=True)  # JSON
    func = Column(Text, nullable=True)
    updated_date = Column(DateTime, nullable=True)


class VariableORM(TenantColumnsMixin, Base):
    """ORM model for variable table."""
    
    __tablename__ = 'variable'
    
    name = Column(String(255), nullable=False, default="")
    value = Column(Text, nullable=True)
    type = Column(String(32), nullable=False, default="string")
    updated_date = Column(DateTime, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Document Stores
# ═══════════════════════════════════════════════════════════════════════════════

class DocumentStoreORM(TenantColumnsMixin, Base):
    """ORM model for document_store table."""
    
    __tablename__ = 'document_store'
    
    name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=True)
    loaders = Column(Text, nullable=True)  # JSON
    where_used = Column(Text, nullable=True)  # JSON
    updated_date = Column(DateTime, nullable=True)


class DocumentStoreFileChunkORM(TenantColumnsMixin, Base):
    """
    ORM model for document_store_file_chunk table.

    ``store_id`` points at document_store.id. It is a logical reference
    without a database constraint, so chunks of a store that is not part of
    the same import can still be saved.
    """
    
    __tablename__ = 'document_store_file_chunk'
    
    store_id = Column(String(64), nullable=True, index=True)
    doc_id = Column(String(64), nullable=True, index=True)
    chunk_no = Column(Integer, nullable=False, default=0)
    page_content = Column(Text, nullable=False, default="")
    metadata_ = Column('metadata', Text, nullable=True)  # JSON


# ═══════════════════════════════════════════════════════════════════════════════
# Executions
# ═══════════════════════════════════════════════════════════════════════════════

class ExecutionORM(TenantColumnsMixin, Base):
    """ORM model for execution table (agent-flow run logs)."""
    
    __tablename__ = 'execution'
    
    agentflow_id = Column(String(64), nullable=True, index=True)
    session_id = Column(String(255), nullable=True)
    state = Column(String(32), nullable=False, default="INPROGRESS")
    execution_data = Column(Text, nullable=False, default="[]")  # JSON: event log
    action = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    stopped_date = Column(DateTime, nullable=True)
