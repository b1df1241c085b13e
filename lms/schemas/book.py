#!/usr/bin/env python
"""
    Book Schemas for LMS,
    request bodies and the serialized form of a Book row.

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class BookCreate(BaseModel):
    # Presence is checked by BookRepository so a missing title is a 400
    title: Optional[str] = None
    author: Optional[str] = None
    total_copies: Optional[int] = Field(None, alias="totalCopies")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"title": "X", "author": "Y", "totalCopies": 1}
        }

class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    total_copies: Optional[int] = Field(None, alias="totalCopies")

    class Config:
        populate_by_name = True

class Book(BaseModel):
    id: int
    title: str
    author: str
    total_copies: int
    available_copies: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "title": "X",
                "author": "Y",
                "total_copies": 1,
                "available_copies": 1,
                "created_at": "2026-01-15T12:00:00",
                "updated_at": "2026-01-15T12:00:00"
            }
        }
