"""Fatal error type shared by every reconciliation stage."""

from typing import Optional


class ModelSpecError(Exception):
    """A terminal validation failure for one normalize/plan call.

    Carries a machine code, a human-readable message and an optional
    remediation hint.
    """

    def __init__(self, message: str, fix: Optional[str] = None, code: str = "invalid_payload"):
        super().__init__(message)
        self.message = message
        self.fix = fix
        self.code = code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "fix": self.fix}
