"""
Error taxonomy shared by every resource.

Each error knows its HTTP status and the body returned to the caller. Store
and signing failures are reported as ``InternalError`` without any detail.
"""
from typing import Dict, Iterable, List, Optional, Sequence


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(AppError):
    status_code = 400
    message = "Invalid input"

    def __init__(self, violations: List[Dict[str, str]]):
        super().__init__()
        self.violations = violations

    def to_dict(self) -> dict:
        return {"detail": self.message, "errors": self.violations}


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"{entity.capitalize()} not found")


class DuplicateError(AppError):
    status_code = 400
    message = "User already exists"


class AuthError(AppError):
    status_code = 400
    message = "Invalid credentials"


class InternalError(AppError):
    status_code = 500


def violation(path: str, message: str) -> Dict[str, str]:
    return {"path": path, "message": message}


def _path(loc: Sequence) -> str:
    # first element is the request part ("body", "query", "path")
    parts = loc[1:] if loc and loc[0] in ("body", "query", "path", "header") else loc
    return ".".join(str(p) for p in parts)


def violations_from(errors: Iterable[dict]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{path, message}`` pairs."""
    return [violation(_path(e.get("loc", ())), e.get("msg", "")) for e in errors]
