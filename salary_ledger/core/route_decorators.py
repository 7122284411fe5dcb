"""
Route Decorators for access logging
"""

import functools
import logging
from typing import Callable, Any
from fastapi import Request

logger = logging.getLogger(__name__)


def log_route_access(func: Callable) -> Callable:
    """Decorator to log route access for auditing."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Any:
        request = kwargs.get('request')
        if request is None:
            request = next((arg for arg in args if isinstance(arg, Request)), None)

        current_user = kwargs.get('current_user')

        log_data = {
            "function": func.__name__,
        }

        if request:
            log_data.update({
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None
            })

        if current_user:
            log_data.update({
                "user_id": current_user.id,
                "user_role": current_user.role.value
            })

        logger.info(f"Route access: {func.__name__}", extra=log_data)

        return await func(*args, **kwargs)

    return wrapper
