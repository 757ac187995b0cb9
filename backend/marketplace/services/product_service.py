"""
RR Nagar Backend — Product Service (Business Logic)
=====================================================

What:  Listing, retrieval, creation (with template cloning), advisory
       translation and deletion of products.
How:   Stateless service; receives the db session and the request Identity
       for each call. Authorization is delegated to the pure predicates in
       marketplace.identity.
Who:   Called by the /api/products route handlers.

Creation Flow (POST /api/products):
    ┌──────────┐   ┌───────────┐   ┌───────────┐   ┌──────────┐   ┌─────────────┐
    │ Identity │──▶│  Parse &  │──▶│ Template  │──▶│  Store   │──▶│ Insert +    │
    │  check   │   │ validate  │   │  clone    │   │  image   │   │ commit      │
    └──────────┘   └───────────┘   └───────────┘   └──────────┘   └──────┬──────┘
                                                                         │
                       response (201) ◀──────────────────────────────────┤
                                                                         ▼
                                                         background: translate
                                                         title/description

    The translation runs after the commit, in its own session. The 201
    response carries the record as committed; it may or may not already
    include the translated fields. Translation errors are logged and
    dropped and never touch the committed row.

Deletion Flow (DELETE /api/products/{id}):
    lookup (404) → can_delete_product (403) → delete custody rows → delete product
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from marketplace.config import settings
from marketplace.exceptions import (
    AuthenticationError,
    DatabaseError,
    MarketplaceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from marketplace.identity import (
    Identity,
    can_clone_template,
    can_create_product,
    can_delete_product,
    creates_template,
)
from marketplace.models.category import Category
from marketplace.models.product import DEFAULT_UNIT, Product, ProductSupplier
from marketplace.schemas.product import ProductCreate, ProductResponse
from marketplace.services.file_service import file_service
from marketplace.services.translation_base import TranslationService

logger = logging.getLogger(__name__)

# Fields a supplier's clone takes from the template, overriding its own input
TEMPLATE_FIELDS = (
    "title",
    "description",
    "variety",
    "sub_variety",
    "unit",
    "category_id",
    "image",
)


@dataclass
class ImageUpload:
    """An uploaded image as read from the multipart request."""
    filename: str
    content: bytes
    size: Optional[int] = None


# ── Input parsing helpers ─────────────────────────────────────────────────

def parse_optional_int(value: Optional[str], field: str) -> Optional[int]:
    """Blank → None; digits → int; anything else → ValidationError."""
    if value is None or not str(value).strip():
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(message=f"{field} must be an integer", field=field)


def parse_price(value: Optional[str]) -> float:
    """Blank → 0. Must be a finite, non-negative number."""
    if value is None or not str(value).strip():
        return 0.0
    try:
        price = float(str(value).strip())
    except ValueError:
        raise ValidationError(message="price must be a number", field="price")
    if not math.isfinite(price) or price < 0:
        raise ValidationError(message="price must be a non-negative number", field="price")
    return round(price, 2)


def _with_associations(query):
    """Eager-load the category and custody suppliers every response includes."""
    return query.options(
        selectinload(Product.category),
        selectinload(Product.suppliers),
    )


def _raw_message(exc: Exception) -> str:
    """The driver's own error text, as surfaced to clients on 500s."""
    return str(getattr(exc, "orig", None) or exc)


class ProductService:
    """
    Business logic layer for product operations.

    Error Handling Strategy:
        - Input problems → ValidationError (400)
        - Missing identity → AuthenticationError (401)
        - Not owner/custodian → PermissionDeniedError (403)
        - Missing product → NotFoundError (404)
        - Listing failures → DatabaseError with a fixed message (500)
        - Other persistence failures → DatabaseError with the raw message (500)
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_products(
        self,
        db: AsyncSession,
        identity: Identity,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        variety: Optional[str] = None,
        mine: bool = False,
    ) -> List[ProductResponse]:
        """
        Full catalog listing, newest first, no pagination.

        Filters (all optional, combined with AND):
            search       → case-insensitive substring of title, variety,
                           sub_variety or description
            category_id  → exact category
            variety      → exact variety
            mine         → only the session supplier's own products; ignored
                           without a supplier identity
        """
        category = parse_optional_int(category_id, "categoryId")

        try:
            query = _with_associations(select(Product))

            if search:
                pattern = f"%{search}%"
                query = query.where(
                    or_(
                        Product.title.ilike(pattern),
                        Product.variety.ilike(pattern),
                        Product.sub_variety.ilike(pattern),
                        Product.description.ilike(pattern),
                    )
                )
            if category is not None:
                query = query.where(Product.category_id == category)
            if variety:
                query = query.where(Product.variety == variety)
            if mine and identity.is_supplier:
                query = query.where(Product.supplier_id == identity.supplier_id)

            query = query.order_by(Product.created_at.desc(), Product.id.desc())

            result = await db.execute(query)
            products = result.scalars().all()
            return [ProductResponse.model_validate(p) for p in products]

        except Exception as e:
            logger.error("Products GET error: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to load products",
                context={"error_type": type(e).__name__},
            )

    async def list_templates(self, db: AsyncSession) -> List[ProductResponse]:
        """Template products (admin-authored, ownerless), ordered by title."""
        try:
            result = await db.execute(
                _with_associations(select(Product))
                .where(Product.is_template.is_(True))
                .order_by(Product.title.asc(), Product.id.asc())
            )
            return [ProductResponse.model_validate(p) for p in result.scalars().all()]
        except Exception as e:
            logger.error("Templates GET error: %s", str(e))
            raise DatabaseError(message=_raw_message(e))

    async def get_product(self, db: AsyncSession, product_id: int) -> ProductResponse:
        """
        Single product with category and custody suppliers. Public.

        Raises:
            NotFoundError: no product with that id (→ 404)
        """
        try:
            result = await db.execute(
                _with_associations(select(Product)).where(Product.id == product_id)
            )
            product = result.scalar_one_or_none()
            if product is None:
                raise NotFoundError(resource="product", resource_id=str(product_id))
            return ProductResponse.model_validate(product)

        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Database error fetching product %s: %s", product_id, str(e))
            raise DatabaseError(message=_raw_message(e), context={"product_id": product_id})

    # ── Creation ──────────────────────────────────────────────────────────

    async def create_product(
        self,
        db: AsyncSession,
        identity: Identity,
        data: ProductCreate,
        image: Optional[ImageUpload] = None,
    ) -> ProductResponse:
        """
        Create a product for the calling supplier, or a template for an admin.

        Workflow Steps:
            1. Require a supplier or admin identity
            2. Parse price / categoryId / templateId
            3. Supplier + valid template → copy TEMPLATE_FIELDS from it
            4. Require a title; check the category exists
            5. Store the uploaded image unless the template supplied one
            6. Insert and commit

        Returns:
            ProductResponse of the committed record (before translation).

        Raises:
            AuthenticationError, ValidationError, FileStorageError, DatabaseError
        """
        if not can_create_product(identity):
            raise AuthenticationError()

        fields = {
            "title": data.title or data.name,
            "description": data.description or "",
            "price": parse_price(data.price),
            "category_id": parse_optional_int(data.category_id, "categoryId"),
            "variety": data.variety or None,
            "sub_variety": data.sub_variety or None,
            "unit": data.unit or DEFAULT_UNIT,
            "image": "",
            "supplier_id": identity.supplier_id,
            "is_template": creates_template(identity),
        }
        template_id = parse_optional_int(data.template_id, "templateId")

        template = None
        if template_id is not None and can_clone_template(identity):
            template = await db.get(Product, template_id)
            if template is not None and template.is_template:
                for name in TEMPLATE_FIELDS:
                    fields[name] = getattr(template, name)
                logger.info(
                    "Supplier %s cloning template product %s",
                    identity.supplier_id,
                    template_id,
                )
            else:
                template = None

        if not fields["title"]:
            raise ValidationError(message="Product title is required", field="title")

        if fields["category_id"] is not None:
            if await db.get(Category, fields["category_id"]) is None:
                raise ValidationError(
                    message=f"Category {fields['category_id']} does not exist",
                    field="categoryId",
                )

        stored_path: Optional[str] = None
        if image is not None and template is None:
            stored_path, relative_path = await file_service.validate_and_store(
                filename=image.filename,
                content=image.content,
                content_length=image.size,
            )
            fields["image"] = file_service.public_path(relative_path)

        product = Product(**fields)
        try:
            db.add(product)
            # Committed here so the background translation session can see the row
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            if stored_path:
                await file_service.cleanup_file(stored_path)
            logger.error("Product CREATE error: %s", str(e))
            raise DatabaseError(message=_raw_message(e))

        logger.info(
            "Product %s created (supplier=%s, template=%s)",
            product.id,
            product.supplier_id,
            product.is_template,
        )

        try:
            result = await db.execute(
                _with_associations(select(Product))
                .where(Product.id == product.id)
                .execution_options(populate_existing=True)
            )
            created = result.scalar_one()
        except SQLAlchemyError as e:
            logger.error("Product %s reload error: %s", product.id, str(e))
            raise DatabaseError(message=_raw_message(e))
        return ProductResponse.model_validate(created)

    async def enrich_translations(
        self,
        session_factory: async_sessionmaker,
        translator: TranslationService,
        product_id: int,
        target_language: Optional[str] = None,
    ) -> None:
        """
        Advisory translation of a committed product's title and description.

        Runs as a background task after the creation response. Opens its own
        session. Every failure (translator or database) is logged and
        swallowed; the product keeps null translated fields in that case.
        """
        language = target_language or settings.translation_target_language
        try:
            async with session_factory() as session:
                product = await session.get(Product, product_id)
                if product is None:
                    logger.debug("Translation skipped: product %s no longer exists", product_id)
                    return

                title_translated = await translator.translate(product.title, language)
                description_translated = (
                    await translator.translate(product.description, language)
                    if product.description
                    else ""
                )

                product.title_kannada = title_translated
                product.description_kannada = description_translated
                await session.commit()
                logger.info("Product %s translated to %s", product_id, language)

        except Exception as e:
            logger.warning("Translation skipped for product %s: %s", product_id, str(e))

    # ── Deletion ──────────────────────────────────────────────────────────

    async def _has_custody(self, db: AsyncSession, product_id: int, supplier_id: int) -> bool:
        result = await db.execute(
            select(ProductSupplier.product_id).where(
                ProductSupplier.product_id == product_id,
                ProductSupplier.supplier_id == supplier_id,
            )
        )
        return result.first() is not None

    async def delete_product(self, db: AsyncSession, identity: Identity, product_id: int) -> None:
        """
        Delete a product after the dual ownership check.

        Raises:
            NotFoundError: no such product (→ 404)
            PermissionDeniedError: not admin, owner or custodian (→ 403)
            DatabaseError: persistence failure (→ 500, raw message)
        """
        try:
            product = await db.get(Product, product_id)
            if product is None:
                raise NotFoundError(resource="product", resource_id=str(product_id))

            has_custody = False
            if not identity.is_admin and identity.is_supplier:
                has_custody = await self._has_custody(db, product.id, identity.supplier_id)

            if not can_delete_product(identity, product, has_custody):
                logger.warning(
                    "Delete of product %s refused for %s %s",
                    product_id,
                    identity.role,
                    identity.account_id,
                )
                raise PermissionDeniedError()

            # Custody rows first: no cascade is declared on the join table
            await db.execute(
                delete(ProductSupplier).where(ProductSupplier.product_id == product.id)
            )
            await db.delete(product)
            await db.flush()
            logger.info("Product %s deleted by %s %s", product_id, identity.role, identity.account_id)

        except MarketplaceError:
            raise
        except Exception as e:
            logger.error("Product DELETE error for %s: %s", product_id, str(e))
            raise DatabaseError(message=_raw_message(e), context={"product_id": product_id})


# ── Singleton Instance ────────────────────────────────────────────────────
product_service = ProductService()
