"""
RR Nagar Backend — Product Route Handlers
===========================================

What:  /api/products listing, template listing, detail, creation and deletion.
How:   Thin handlers: pull query/form/session data, call ProductService,
       let the global exception handlers turn service errors into responses.
Who:   Called by the storefront, the supplier dashboard and the admin panel.

Route order matters: /templates/all is declared before /{product_id}.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.database import get_db_session, get_session_factory
from marketplace.identity import Identity, get_identity
from marketplace.schemas.common import ErrorResponse, OkResponse
from marketplace.schemas.product import ProductCreate, ProductResponse
from marketplace.services.gemini_translator import get_translation_service
from marketplace.services.product_service import ImageUpload, product_service
from marketplace.services.translation_base import TranslationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get(
    "",
    response_model=List[ProductResponse],
    responses={
        400: {"description": "Malformed categoryId", "model": ErrorResponse},
        500: {"description": "Failed to load products", "model": ErrorResponse},
    },
    summary="List products",
)
async def list_products(
    search: Optional[str] = Query(default=None, description="Substring filter"),
    q: Optional[str] = Query(default=None, description="Alias of `search`"),
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    variety: Optional[str] = Query(default=None),
    supplier: Optional[str] = Query(
        default=None,
        description="`true` restricts the list to the calling supplier's products",
    ),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[ProductResponse]:
    """
    Newest first, no pagination. `search` wins over `q` when both are sent.
    """
    return await product_service.list_products(
        db=db,
        identity=identity,
        search=search or q,
        category_id=category_id,
        variety=variety,
        mine=supplier == "true",
    )


@router.get(
    "/templates/all",
    response_model=List[ProductResponse],
    summary="List template products",
)
async def list_templates(
    db: AsyncSession = Depends(get_db_session),
) -> List[ProductResponse]:
    return await product_service.list_templates(db=db)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Get a single product",
)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> ProductResponse:
    return await product_service.get_product(db=db, product_id=product_id)


@router.post(
    "",
    status_code=201,
    response_model=ProductResponse,
    responses={
        400: {"description": "Invalid input or image", "model": ErrorResponse},
        401: {"description": "No supplier or admin session", "model": ErrorResponse},
        500: {"description": "Persistence failure", "model": ErrorResponse},
    },
    summary="Create a product",
    description=(
        "Multipart form. Suppliers may pass templateId to clone a template; "
        "admins without a supplier session create templates. The secondary-"
        "language title/description are filled in after the response."
    ),
)
async def create_product(
    background_tasks: BackgroundTasks,
    title: Optional[str] = Form(default=None),
    name: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None, alias="categoryId"),
    variety: Optional[str] = Form(default=None),
    sub_variety: Optional[str] = Form(default=None, alias="subVariety"),
    unit: Optional[str] = Form(default=None),
    template_id: Optional[str] = Form(default=None, alias="templateId"),
    image: Optional[UploadFile] = File(default=None),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    translator: TranslationService = Depends(get_translation_service),
) -> ProductResponse:
    data = ProductCreate(
        title=title,
        name=name,
        price=price,
        description=description,
        category_id=category_id,
        variety=variety,
        sub_variety=sub_variety,
        unit=unit,
        template_id=template_id,
    )

    upload = None
    if image is not None and image.filename:
        try:
            content = await image.read()
            upload = ImageUpload(filename=image.filename, content=content, size=image.size)
            logger.info("Received product image: %s (%d bytes)", image.filename, len(content))
        finally:
            await image.close()

    product = await product_service.create_product(
        db=db, identity=identity, data=data, image=upload
    )

    background_tasks.add_task(
        product_service.enrich_translations,
        session_factory,
        translator,
        product.id,
    )
    return product


@router.delete(
    "/{product_id}",
    response_model=OkResponse,
    responses={
        403: {"description": "Not owner, custodian or admin", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Delete a product",
)
async def delete_product(
    product_id: int,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await product_service.delete_product(db=db, identity=identity, product_id=product_id)
    return OkResponse()
