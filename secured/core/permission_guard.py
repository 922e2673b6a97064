from __future__ import annotations

from typing import Any

from .decision import AuthenticationSupplier, AuthorizationResult
from .engine import SecuredAuthorizationManager
from .errors import AccessDenied
from .invocation import MethodInvocation


class PermissionGuard:
    """
    Final gate before a method runs.

    Invariant:
    - a deny decision never reaches the method.
    - ungoverned calls (abstain) proceed unless deny_on_abstain is set.
    """

    def __init__(self, manager: SecuredAuthorizationManager, *, deny_on_abstain: bool = False):
        self._manager = manager
        self._deny_on_abstain = deny_on_abstain

    def check(self, authentication: AuthenticationSupplier, invocation: MethodInvocation) -> AuthorizationResult:
        result = self._manager.verify(authentication, invocation)
        if result.abstained and self._deny_on_abstain:
            raise AccessDenied(
                code="access.denied",
                message="Method is not governed by @secured and ungoverned calls are denied",
                data={"reasons": result.reason_codes},
            )
        return result

    def invoke(self, authentication: AuthenticationSupplier, invocation: MethodInvocation) -> Any:
        self.check(authentication, invocation)
        return invocation.proceed()
