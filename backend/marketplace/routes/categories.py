"""
RR Nagar Backend — Category Route Handlers
============================================

What:  GET /api/categories (with nameKannada) and POST /api/categories.
Who:   Storefront navigation and the admin panel.
"""

import json
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_db_session
from marketplace.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryWithTranslation,
)
from marketplace.schemas.common import ErrorResponse
from marketplace.services.category_service import category_service
from marketplace.services.gemini_translator import get_translation_service
from marketplace.services.translation_base import TranslationService

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get(
    "",
    response_model=List[CategoryWithTranslation],
    responses={500: {"description": "Unable to load categories", "model": ErrorResponse}},
    summary="List categories with translated names",
)
async def list_categories(
    db: AsyncSession = Depends(get_db_session),
    translator: TranslationService = Depends(get_translation_service),
) -> List[CategoryWithTranslation]:
    return await category_service.list_categories(db=db, translator=translator)


FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_category_body(request: Request) -> Dict[str, Any]:
    """
    JSON or form body as a dict. A missing, unparseable or non-object body
    reads as {} so the name check answers 400 instead of a schema 422.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)

    raw = await request.body()
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


_CATEGORY_BODY = {"schema": CategoryCreate.model_json_schema()}


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses={400: {"description": "Invalid name or insert failure", "model": ErrorResponse}},
    summary="Create a category",
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": _CATEGORY_BODY,
                "application/x-www-form-urlencoded": _CATEGORY_BODY,
            }
        }
    },
)
async def create_category(
    body: Dict[str, Any] = Depends(read_category_body),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryResponse:
    return await category_service.create_category(
        db=db, name=body.get("name"), icon=body.get("icon")
    )
