"""
RR Nagar Backend — Auth Schemas
=================================
"""

from typing import Optional

from pydantic import BaseModel, Field

from marketplace.schemas.common import CamelModel


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class AccountResponse(CamelModel):
    """The account a login just attached to the session."""
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    role: str


class WhoAmIResponse(CamelModel):
    role: str
    id: Optional[int] = None
