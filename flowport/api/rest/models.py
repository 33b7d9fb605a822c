"""
REST API Pydantic Models (Request/Response Schemas).

Export and import bodies are free-form JSON validated by the service
(ExportSelection / ExportBundle), so only the envelopes live here.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Literal
from pydantic import BaseModel, Field, ConfigDict


# ═══════════════════════════════════════════════════════════════════════════════
# Common Models
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    
    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    """Health check response."""
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    components: Dict[str, str] = Field(
        default_factory=dict, 
        description="Component health status"
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Export/Import Models
# ═══════════════════════════════════════════════════════════════════════════════

class ImportResponse(BaseModel):
    """Confirmation of a committed import."""
    message: str = Field("success", description="Result message")


# ═══════════════════════════════════════════════════════════════════════════════
# Execution Tree Models
# ═══════════════════════════════════════════════════════════════════════════════

class ExecutionTreeRequest(BaseModel):
    """Flat execution log of one agent-flow run."""
    executed_data: List[Any] = Field(
        default_factory=list,
        alias="executedData",
        description="Ordered node execution events",
    )
    
    model_config = ConfigDict(populate_by_name=True)


class TreeNodeSchema(BaseModel):
    """One node of the execution forest."""
    id: str
    label: str
    name: Optional[str] = None
    status: str
    data: Dict[str, Any] = Field(default_factory=dict)
    children: List["TreeNodeSchema"] = Field(default_factory=list)


class ExecutionTreeResponse(BaseModel):
    """Execution forest with its aggregate status."""
    tree: List[TreeNodeSchema] = Field(default_factory=list)
    status: Optional[str] = Field(None, description="Aggregate run status, null when undetermined")


TreeNodeSchema.model_rebuild()
