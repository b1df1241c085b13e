from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from lms.core.models import UserRole

class UserCreate(BaseModel):
    first_name: str = Field(..., alias="firstName", min_length=2, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=2, max_length=100)
    email: EmailStr
    role: UserRole = UserRole.STUDENT

    class Config:
        populate_by_name = True

class User(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: EmailStr
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
