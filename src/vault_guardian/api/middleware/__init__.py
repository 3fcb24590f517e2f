"""API middleware — caller auth, CORS."""

from vault_guardian.api.middleware.auth import CallerContext
from vault_guardian.api.middleware.cors import setup_cors

__all__ = ["CallerContext", "setup_cors"]
