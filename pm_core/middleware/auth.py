"""
认证中间件
从 Bearer JWT 解析当前用户，写入 request.state.user
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware

from pm_core.config import get_settings
from pm_core.utils.errors import UnauthorizedError
from pm_core.utils.logger import get_logger, user_id_var

VENDOR_ROLE = "vendor"
SHOPPER_ROLE = "shopper"


@dataclass(frozen=True)
class CurrentUser:
    """当前请求用户"""
    id: int
    role: str

    @property
    def is_vendor(self) -> bool:
        return self.role == VENDOR_ROLE


def create_access_token(user_id: int, role: str, expires_minutes: Optional[int] = None) -> str:
    """创建访问令牌"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> CurrentUser:
    """解码访问令牌

    Raises:
        UnauthorizedError: 令牌无效、过期或类型不对
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise UnauthorizedError(code="INVALID_TOKEN", detail=f"Token validation failed: {e}")

    if payload.get("type") != "access":
        raise UnauthorizedError(code="INVALID_TOKEN", detail="Not an access token")

    try:
        return CurrentUser(id=int(payload["sub"]), role=str(payload.get("role", SHOPPER_ROLE)))
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError(code="INVALID_TOKEN", detail="Malformed token subject")


class AuthMiddleware(BaseHTTPMiddleware):
    """认证中间件

    没有 Authorization 头的请求以匿名身份继续（浏览商品无需登录），
    写操作由路由依赖 get_current_user 强制认证。
    """

    def __init__(self, app, logger=None):
        super().__init__(app)
        self.logger = logger or get_logger("middleware.auth")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        auth_header = request.headers.get("authorization", "")
        if not auth_header:
            return await call_next(request)

        if not auth_header.startswith("Bearer "):
            return UnauthorizedError(
                code="INVALID_AUTH_FORMAT",
                detail="Authorization header must start with 'Bearer '"
            ).to_response(request)

        try:
            user = decode_access_token(auth_header[7:])
        except UnauthorizedError as exc:
            self.logger.warning("Rejected access token", path=request.url.path, code=exc.code)
            return exc.to_response(request)

        request.state.user = user
        token = user_id_var.set(user.id)
        try:
            return await call_next(request)
        finally:
            user_id_var.reset(token)


async def get_current_user(request: Request) -> CurrentUser:
    """依赖注入：获取当前登录用户"""
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError()
    return user
