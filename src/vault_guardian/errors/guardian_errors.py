"""GuardianError — base exception class for all vault-guardian errors."""

from __future__ import annotations


class GuardianError(Exception):
    """Base error for all guardian operations.

    Attributes:
        message: Human-readable error description, including the cause text
            when one was supplied.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "guardian-error",
        cause: BaseException | str | None = None,
    ) -> None:
        if cause is not None and str(cause):
            message = f"{message}\n\n{cause}"
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
