from .annotations import AnnotationLookup, AttributeAnnotationLookup, Secured, secured
from .authorities import AuthoritiesAuthorizationManager
from .cache import ResolutionCache
from .decision import Authentication, AuthorizationResult
from .engine import SecuredAuthorizationManager
from .invocation import MethodClassKey, MethodInvocation
from .metadata_table import TableAnnotationLookup
from .permission_guard import PermissionGuard
from .resolver import SecuredAuthorityResolver

__all__ = [
  "AnnotationLookup",
  "AttributeAnnotationLookup",
  "Secured",
  "secured",
  "AuthoritiesAuthorizationManager",
  "ResolutionCache",
  "Authentication",
  "AuthorizationResult",
  "SecuredAuthorizationManager",
  "MethodClassKey",
  "MethodInvocation",
  "TableAnnotationLookup",
  "PermissionGuard",
  "SecuredAuthorityResolver",
]
