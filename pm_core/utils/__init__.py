"""
PawMart 实用工具模块
"""

from .logger import get_logger, LogContext, setup_logging
from .errors import PawMartException, BadRequestError, ForbiddenError, NotFoundError

__all__ = [
    "get_logger",
    "LogContext",
    "setup_logging",
    "PawMartException",
    "BadRequestError",
    "ForbiddenError",
    "NotFoundError",
]
