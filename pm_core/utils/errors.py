"""
PawMart 错误处理系统
遵循 RFC7807 Problem Details 标准
"""
from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field


class ProblemDetail(BaseModel):
    """RFC7807 Problem Details 模型"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "about:blank",
                "title": "Forbidden",
                "status": 403,
                "detail": "Cannot create product, you are not a vendor",
                "code": "NOT_A_VENDOR"
            }
        }
    )

    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    code: Optional[str] = None  # 业务错误码


class PawMartException(Exception):
    """PawMart 基础异常类"""

    def __init__(
        self,
        status: int,
        code: str,
        title: str,
        detail: Optional[str] = None
    ):
        self.status = status
        self.code = code
        self.title = title
        self.detail = detail
        super().__init__(detail or title)

    def to_problem_detail(self, instance: Optional[str] = None) -> ProblemDetail:
        """转换为 Problem Details 格式"""
        return ProblemDetail(
            type="about:blank",
            title=self.title,
            status=self.status,
            detail=self.detail,
            instance=instance,
            code=self.code
        )

    def to_response(self, request: Optional[Request] = None) -> JSONResponse:
        """转换为 JSON 响应"""
        instance = str(request.url) if request else None
        problem = self.to_problem_detail(instance)

        return JSONResponse(
            status_code=self.status,
            content={
                "ok": False,
                "error": problem.model_dump(exclude_none=True)
            }
        )


# 预定义错误类
class BadRequestError(PawMartException):
    """400 错误请求"""
    def __init__(self, code: str, detail: str):
        super().__init__(
            status=400,
            code=code,
            title="Bad Request",
            detail=detail
        )


class UnauthorizedError(PawMartException):
    """401 未授权"""
    def __init__(self, code: str = "UNAUTHORIZED", detail: str = "Authentication required"):
        super().__init__(
            status=401,
            code=code,
            title="Unauthorized",
            detail=detail
        )


class ForbiddenError(PawMartException):
    """403 禁止访问"""
    def __init__(self, code: str = "FORBIDDEN", detail: str = "Access denied"):
        super().__init__(
            status=403,
            code=code,
            title="Forbidden",
            detail=detail
        )


class NotFoundError(PawMartException):
    """404 未找到"""
    def __init__(self, code: str, resource: str):
        super().__init__(
            status=404,
            code=code,
            title="Not Found",
            detail=f"{resource} not found"
        )


class InternalServerError(PawMartException):
    """500 内部错误"""
    def __init__(self, code: str = "INTERNAL_ERROR", detail: str = "An internal error occurred"):
        super().__init__(
            status=500,
            code=code,
            title="Internal Server Error",
            detail=detail
        )
