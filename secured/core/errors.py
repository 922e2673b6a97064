from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SecuredError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(SecuredError):
    pass


class AnnotationConfigurationError(SecuredError):
    pass


class InvocationError(SecuredError):
    pass


class AccessDenied(SecuredError):
    pass
