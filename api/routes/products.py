"""
Product catalog API routes (public reads and admin maintenance)
"""
from fastapi import APIRouter, Depends, Query, Security, status

from api.dependencies import Principal, require_admin, get_catalog_service
from application.dtos.catalog import ProductCreateDTO, ProductUpdateDTO, ProductDTO
from application.services.catalog_service import CatalogService
from core.config import settings
from core.response import success_response, paginated_response, Response as ApiResponse

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)

admin_router = APIRouter(
    prefix="/admin/products",
    tags=["Products (admin)"]
)


@router.get("", summary="List active products")
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: CatalogService = Depends(get_catalog_service),
):
    products, total = await service.list_products(page=page, size=size)
    return paginated_response(
        items=[p.model_dump(mode="json") for p in products],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{product_id}", summary="Get a product", response_model=ApiResponse[ProductDTO])
async def get_product(
    product_id: int,
    service: CatalogService = Depends(get_catalog_service),
):
    product = await service.get_product(product_id)
    return success_response(data=product)


@admin_router.post(
    "",
    summary="Create a product",
    response_model=ApiResponse[ProductDTO],
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    payload: ProductCreateDTO,
    service: CatalogService = Depends(get_catalog_service),
    _admin: Principal = Security(require_admin),
):
    product = await service.create_product(payload)
    return success_response(data=product, message="Product created")


@admin_router.put("/{product_id}", summary="Update a product", response_model=ApiResponse[ProductDTO])
async def update_product(
    product_id: int,
    payload: ProductUpdateDTO,
    service: CatalogService = Depends(get_catalog_service),
    _admin: Principal = Security(require_admin),
):
    product = await service.update_product(product_id, payload)
    return success_response(data=product, message="Product updated")


@admin_router.delete("/{product_id}", summary="Deactivate a product")
async def delete_product(
    product_id: int,
    service: CatalogService = Depends(get_catalog_service),
    _admin: Principal = Security(require_admin),
):
    """Soft delete: the product disappears from the catalog, past orders keep it."""
    await service.delete_product(product_id)
    return success_response(data={"id": product_id}, message="Product deactivated")
