"""
Pydantic schemas for session tokens
"""

from pydantic import BaseModel, Field
from datetime import datetime
import uuid


class SessionPayload(BaseModel):
    """Decoded session token"""
    user_id: uuid.UUID = Field(..., description="User ID")
    expires: datetime = Field(..., description="Expiration time (UTC)")
