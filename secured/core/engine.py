from __future__ import annotations

import logging
from typing import FrozenSet, Optional

from .annotations import AnnotationLookup
from .authorities import AuthoritiesAuthorizationManager
from .cache import ResolutionCache
from .decision import DENY, AuthenticationSupplier, AuthorizationResult
from .errors import AccessDenied, ValidationError
from .invocation import MethodClassKey, MethodInvocation
from .resolver import SecuredAuthorityResolver

logger = logging.getLogger(__name__)


class SecuredAuthorizationManager:
    """
    Decides whether an identity may invoke a method, from its @secured metadata.

    Invariants:
    - metadata for a (method, runtime type) pair is resolved once per manager
    - calls without metadata abstain and never touch the identity supplier
    """

    def __init__(
        self,
        lookup: Optional[AnnotationLookup] = None,
        delegate: Optional[AuthoritiesAuthorizationManager] = None,
    ):
        self._resolver = SecuredAuthorityResolver(lookup)
        self._delegate = delegate or AuthoritiesAuthorizationManager()
        self._cached_authorities: ResolutionCache[MethodClassKey, FrozenSet[str]] = ResolutionCache()

    def set_authorities_authorization_manager(self, delegate: AuthoritiesAuthorizationManager) -> None:
        if delegate is None:
            raise ValidationError(code="manager.invalid", message="delegate cannot be None")
        self._delegate = delegate

    def check(self, authentication: AuthenticationSupplier, invocation: MethodInvocation) -> AuthorizationResult:
        authorities = self.get_authorities(invocation)
        if not authorities:
            logger.debug("No @secured metadata for %r, abstaining", invocation.method)
            return AuthorizationResult.abstain()
        return self._delegate.check(authentication, authorities)

    def verify(self, authentication: AuthenticationSupplier, invocation: MethodInvocation) -> AuthorizationResult:
        """
        Like `check`, but raises AccessDenied on a deny decision. Abstain passes.
        """
        result = self.check(authentication, invocation)
        if result.decision == DENY:
            raise AccessDenied(
                code="access.denied",
                message=result.summary or "Access denied",
                data={"reasons": result.reason_codes, "authorities": sorted(result.authorities)},
            )
        return result

    def get_authorities(self, invocation: MethodInvocation) -> FrozenSet[str]:
        key = MethodClassKey.for_invocation(invocation)
        return self._cached_authorities.get_or_compute(
            key, lambda: self._resolver.resolve(key.method, key.target_type)
        )
