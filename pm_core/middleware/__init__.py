"""
PawMart 中间件
"""
from .auth import AuthMiddleware, CurrentUser, get_current_user
from .logging import LoggingMiddleware

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "LoggingMiddleware",
    "get_current_user",
]
