"""
商品 API 路由
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from pm_core.catalog import normalize_category_tokens
from pm_core.middleware.auth import CurrentUser, get_current_user
from pm_core.services import ImageUpload, ProductFields, ProductsService
from pm_core.utils.errors import PawMartException, InternalServerError
from pm_core.utils.logger import get_logger
from .models import ApiResponse, ProductResponse

router = APIRouter()
logger = get_logger(__name__)


async def get_products_service(request: Request) -> ProductsService:
    """依赖注入：获取商品服务"""
    state = request.app.state
    return ProductsService(
        taxonomy=state.taxonomy,
        image_storage=state.image_storage,
        db_manager=state.db_manager
    )


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    """读取上传文件（忽略空文件字段）"""
    uploads = []
    for upload in files or []:
        if not upload.filename:
            continue
        uploads.append(ImageUpload(
            filename=upload.filename,
            content=await upload.read(),
            content_type=upload.content_type
        ))
    return uploads


@router.post("/vendors/{vendor_id}", status_code=201, response_model=ApiResponse[ProductResponse])
async def create_product(
    vendor_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    sub_category: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None, description="商品图片，至少一张"),
    current_user: CurrentUser = Depends(get_current_user),
    products_service: ProductsService = Depends(get_products_service)
):
    """商家创建商品"""
    try:
        product = await products_service.create_product(
            user=current_user,
            vendor_id=vendor_id,
            fields=ProductFields(
                name=name,
                description=description,
                category=category,
                sub_category=sub_category,
                stock=stock,
                price=price
            ),
            images=await _read_uploads(files)
        )
        return ApiResponse.success(product)

    except PawMartException:
        raise
    except Exception:
        logger.error("Create product API failed", exc_info=True)
        raise InternalServerError(code="API_ERROR", detail="Error creating product")


@router.get("", response_model=ApiResponse[List[ProductResponse]])
async def list_products(
    category: Optional[List[str]] = Query(None, description="主分类或子分类，可重复"),
    products_service: ProductsService = Depends(get_products_service)
):
    """按分类浏览商品"""
    try:
        products = await products_service.list_products(normalize_category_tokens(category))
        return ApiResponse.success(products, metadata={"total": len(products)})

    except PawMartException:
        raise
    except Exception:
        logger.error("List products API failed", exc_info=True)
        raise InternalServerError(code="API_ERROR", detail="Error getting all products")


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(
    product_id: int,
    products_service: ProductsService = Depends(get_products_service)
):
    """商品详情"""
    try:
        product = await products_service.get_product(product_id)
        return ApiResponse.success(product)

    except PawMartException:
        raise
    except Exception:
        logger.error("Get product API failed", product_id=product_id, exc_info=True)
        raise InternalServerError(code="API_ERROR", detail="Error viewing product")


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
async def edit_product(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    sub_category: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    existing_urls: Optional[str] = Form(None, description="保留的旧图片 URL（JSON 数组）"),
    files: Optional[List[UploadFile]] = File(None, description="新增商品图片"),
    current_user: CurrentUser = Depends(get_current_user),
    products_service: ProductsService = Depends(get_products_service)
):
    """商家编辑商品"""
    try:
        product = await products_service.edit_product(
            user=current_user,
            product_id=product_id,
            fields=ProductFields(
                name=name,
                description=description,
                category=category,
                sub_category=sub_category,
                stock=stock,
                price=price
            ),
            images=await _read_uploads(files),
            existing_urls=existing_urls
        )
        return ApiResponse.success(product)

    except PawMartException:
        raise
    except Exception:
        logger.error("Edit product API failed", product_id=product_id, exc_info=True)
        raise InternalServerError(code="API_ERROR", detail="Error editing product")


@router.delete("/{product_id}/vendors/{vendor_id}", response_model=ApiResponse[dict])
async def delete_product(
    product_id: int,
    vendor_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    products_service: ProductsService = Depends(get_products_service)
):
    """删除商品并从商家商品列表中移除"""
    try:
        await products_service.delete_product(product_id, vendor_id)
        return ApiResponse.success({
            "message": "Product deleted successfully",
            "product_id": product_id
        })

    except PawMartException:
        raise
    except Exception:
        logger.error("Delete product API failed", product_id=product_id, exc_info=True)
        raise InternalServerError(code="API_ERROR", detail="Error deleting product")
