"""
Pydantic schemas for users and account actions
"""

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional
from datetime import datetime
import uuid


class SignUpForm(BaseModel):
    """User registration schema"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    name: Optional[str] = Field(default=None, max_length=100)
    invite_id: Optional[uuid.UUID] = None
    price_id: Optional[str] = None


class SignInForm(BaseModel):
    """User login schema"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    price_id: Optional[str] = None


class UpdateAccountForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UpdatePasswordForm(BaseModel):
    current_password: str = Field(..., min_length=8, max_length=100)
    new_password: str = Field(..., min_length=8, max_length=100)
    confirm_password: str = Field(..., min_length=8, max_length=100)


class DeleteAccountForm(BaseModel):
    password: str = Field(..., min_length=8, max_length=100)


class UserResponse(BaseModel):
    """User response model"""
    id: uuid.UUID
    email: str
    name: Optional[str]
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
