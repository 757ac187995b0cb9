"""
RR Nagar Backend — Product Schemas
====================================

What:  API shapes for products: the full product record with its category
       and custody suppliers, plus the parsed creation input.
Who:   Returned by the /api/products routes; `ProductCreate` is built by the
       route from multipart form fields and consumed by ProductService.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from marketplace.schemas.common import CamelModel


class CategorySummary(CamelModel):
    id: int
    name: str


class SupplierSummary(CamelModel):
    """Custody supplier as exposed on a product (join-row attributes excluded)."""
    id: int
    name: str
    phone: Optional[str] = None


class ProductResponse(CamelModel):
    """
    What:  Full representation of a product.
    Who:   Returned by list, detail, template listing and creation.

    `title_kannada` / `description_kannada` are filled by the advisory
    translation that runs after creation; they are null until it finishes
    and stay null if it fails.
    """
    id: int
    title: str
    title_kannada: Optional[str] = None
    description: str = ""
    description_kannada: Optional[str] = None
    price: float
    category_id: Optional[int] = None
    variety: Optional[str] = None
    sub_variety: Optional[str] = None
    unit: str
    image: str = ""
    supplier_id: Optional[int] = None
    is_template: bool
    created_at: datetime
    updated_at: datetime
    category: Optional[CategorySummary] = None
    suppliers: List[SupplierSummary] = Field(default_factory=list)


class ProductCreate(BaseModel):
    """
    Raw creation input as received from the multipart form.

    Everything arrives as text; ProductService parses and validates it so
    malformed numbers become 400 responses instead of FastAPI's 422.
    """
    title: Optional[str] = None
    name: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    variety: Optional[str] = None
    sub_variety: Optional[str] = None
    unit: Optional[str] = None
    template_id: Optional[str] = None
