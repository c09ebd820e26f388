"""
基础服务类
"""
from abc import ABC
from typing import Any, Optional

from pm_core.database import DatabaseManager, get_db_manager
from pm_core.utils.logger import get_logger
from pm_core.utils.errors import PawMartException, InternalServerError


class BaseService(ABC):
    """基础服务类"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()
        self.logger = get_logger(self.__class__.__name__)

    async def execute_with_session(
        self,
        operation,
        *args,
        **kwargs
    ) -> Any:
        """使用数据库会话执行操作（由 operation 自行提交）"""
        try:
            async with self.db_manager.get_session() as session:
                return await operation(session, *args, **kwargs)
        except PawMartException:
            raise
        except Exception:
            self.logger.error("Session operation failed", operation=operation.__name__, exc_info=True)
            raise InternalServerError(
                code="SESSION_OPERATION_FAILED",
                detail="Database operation failed"
            )
