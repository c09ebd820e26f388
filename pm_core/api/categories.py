"""
分类 API 路由
"""
from typing import List

from fastapi import APIRouter, Request

from .models import ApiResponse, CategoryResponse

router = APIRouter()


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(request: Request):
    """分类表（按展示顺序）"""
    return ApiResponse.success(request.app.state.taxonomy.to_dict())
