"""
Pydantic Schemas for Request/Response Validation

Request bodies are deliberately loose: the storefront sends whatever its
form holds (extra keys such as ``persons`` or a client-side ``total``), and
the services decide what is valid. Only the JSON envelope is checked here.

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderRequest(BaseModel):
    """Body of ``POST /order``."""
    model_config = ConfigDict(extra="ignore")

    name: Any = Field(None, examples=["Asha"])
    phone: Any = Field(None, examples=["9876543210"])
    address: Any = Field(None, examples=["12 MG Road"])
    items: Any = Field(None, examples=[[{"name": "Gulabjamun (Box of 6)", "qty": 2, "price": 10}]])


class StatusUpdateRequest(BaseModel):
    """Body of ``POST /update-status``."""
    model_config = ConfigDict(extra="ignore")

    tracking_id: Any = Field(None, alias="trackingId", examples=["TID17295012345671234"])
    new_status: Any = Field(None, alias="newStatus", examples=["Out for Delivery"])


class AdminResetRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderCreateResponse(BaseModel):
    """Response after successfully creating an order."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    order_id: str = Field(..., alias="orderId")
    total_amount: float = Field(..., alias="totalAmount")


class StatusUpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    tracking_id: str = Field(..., alias="trackingId")
    status: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    connected_clients: int
    timestamp: datetime
