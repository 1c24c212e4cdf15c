from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class ContactIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    subject: str | None = Field(None, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)


class ContactOut(BaseModel):
    id: int
    success: bool = True
    message: str = "Message received"
