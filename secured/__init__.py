from .core import (
    Authentication,
    AuthorizationResult,
    MethodInvocation,
    PermissionGuard,
    SecuredAuthorizationManager,
    TableAnnotationLookup,
    secured,
)

__all__ = [
    "Authentication",
    "AuthorizationResult",
    "MethodInvocation",
    "PermissionGuard",
    "SecuredAuthorizationManager",
    "TableAnnotationLookup",
    "secured",
]
