"""
RR Nagar Backend — Category Schemas
=====================================
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from marketplace.schemas.common import CamelModel


class CategoryCreate(BaseModel):
    """
    POST /api/categories body, JSON or form-encoded. Documentation only:
    the route reads the raw body so CategoryService answers every bad
    name or icon with a 400.
    """
    name: Any = None
    icon: Optional[str] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    icon: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CategoryWithTranslation(CategoryResponse):
    """Listing entry; `name_kannada` equals `name` when translation is unavailable."""
    name_kannada: str
