"""Admin API key authentication dependency.

The dump endpoint writes into arbitrary server-side directories, so it is
guarded by the X-Admin-Key header. If ADMIN_API_KEY is not configured
(empty string), ALL requests are rejected with 403 (fail-closed).
"""

from __future__ import annotations

import hmac

from fastapi import Header

from ncmdump_service.settings import settings


class AdminAuthError(Exception):
    """Raised when admin authentication fails.

    Turned into a JSON error response by the handler registered in main.py.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


async def require_admin_key(
    x_admin_key: str | None = Header(default=None, alias="X-Admin-Key"),
) -> None:
    """Verify the admin API key header with a timing-safe comparison.

    Raises:
        AdminAuthError: 403 if the key is missing, wrong, or not configured.
    """
    if not settings.admin_api_key:
        raise AdminAuthError(
            "AUTH_NOT_CONFIGURED",
            "Admin API key not configured. Set ADMIN_API_KEY in environment.",
        )

    if not hmac.compare_digest(x_admin_key or "", settings.admin_api_key):
        raise AdminAuthError(
            "FORBIDDEN",
            "Invalid or missing admin API key.",
        )
