"""
Middleware modules for authentication and security
"""

from app.middleware.auth import (
    verify_key,
    verify_user,
    verify_super_admin,
    api_key_header,
)

__all__ = [
    "verify_key",
    "verify_user",
    "verify_super_admin",
    "api_key_header",
]
