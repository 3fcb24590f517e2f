"""Guardian error types."""

from vault_guardian.errors.guardian_errors import GuardianError

__all__ = ["GuardianError"]
