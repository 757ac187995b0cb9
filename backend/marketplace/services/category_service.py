"""
RR Nagar Backend — Category Service
=====================================

What:  Category listing (with secondary-language names) and creation.
How:   One batch translation call per listing. Any translation failure falls
       back to the original names; the listing itself never fails because
       of translation.
Who:   Called by the /api/categories route handlers.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.exceptions import DatabaseError, TranslationError, ValidationError
from marketplace.models.category import Category
from marketplace.schemas.category import CategoryResponse, CategoryWithTranslation
from marketplace.services.translation_base import TranslationService

logger = logging.getLogger(__name__)


class CategoryService:

    async def list_categories(
        self,
        db: AsyncSession,
        translator: TranslationService,
        target_language: Optional[str] = None,
    ) -> List[CategoryWithTranslation]:
        """
        All categories by id ascending, each with `name_kannada`.

        Fallback rules for `name_kannada`:
            translator raised        → original name, every entry
            entry empty or missing   → original name, that entry
        """
        try:
            result = await db.execute(select(Category).order_by(Category.id.asc()))
            categories = result.scalars().all()
        except Exception as e:
            logger.error("Category GET failed: %s", str(e))
            raise DatabaseError(message="Unable to load categories")

        if not categories:
            return []

        names = [c.name or "" for c in categories]
        translated = await self._translate_names(
            translator, names, target_language or settings.translation_target_language
        )

        return [
            CategoryWithTranslation(
                id=c.id,
                name=c.name,
                icon=c.icon,
                created_at=c.created_at,
                updated_at=c.updated_at,
                name_kannada=(translated[idx] if idx < len(translated) else "") or c.name,
            )
            for idx, c in enumerate(categories)
        ]

    async def _translate_names(
        self, translator: TranslationService, names: List[str], language: str
    ) -> List[str]:
        try:
            translated = await translator.translate_batch(names, language)
        except TranslationError as e:
            logger.warning("Category translation skipped: %s", e.message)
            return names
        except Exception as e:
            logger.warning("Category translation skipped (unexpected): %s", str(e))
            return names

        if not isinstance(translated, list):
            logger.warning("Category translation skipped: result was not a list")
            return names
        return translated

    async def create_category(
        self, db: AsyncSession, name: Any, icon: Any = None
    ) -> CategoryResponse:
        """
        Create a category. Unauthenticated.

        Raises:
            ValidationError: name missing, empty or not a string; icon not a
                string; or the insert failed (raw driver message, still a 400)
        """
        if not name or not isinstance(name, str):
            raise ValidationError(message="Valid category name required", field="name")
        if icon is not None and not isinstance(icon, str):
            raise ValidationError(message="Category icon must be a string", field="icon")

        category = Category(name=name, icon=icon)
        try:
            db.add(category)
            await db.flush()
            await db.refresh(category)
        except SQLAlchemyError as e:
            logger.error("Category CREATE failed: %s", str(e))
            raise ValidationError(message=str(getattr(e, "orig", None) or e), field="name")

        logger.info("Category %s created: %s", category.id, category.name)
        return CategoryResponse.model_validate(category)


category_service = CategoryService()
