from __future__ import annotations

from typing import AbstractSet

from .decision import DENY, GRANT, AuthenticationSupplier, AuthorizationResult


class AuthoritiesAuthorizationManager:
    """
    Grants when the current identity holds any of the required authorities.

    The supplier is called once per check; its failures propagate unchanged.
    """

    def check(self, authentication: AuthenticationSupplier, authorities: AbstractSet[str]) -> AuthorizationResult:
        required = frozenset(authorities)
        auth = authentication()
        if auth is None:
            return AuthorizationResult(
                decision=DENY,
                reason_codes=["authentication.missing"],
                summary="No authentication available",
                authorities=required,
            )

        matched = required & auth.authorities
        if matched:
            return AuthorizationResult(
                decision=GRANT,
                reason_codes=["authorities.matched"],
                summary="Granted by authorities: {}".format(", ".join(sorted(matched))),
                authorities=required,
            )
        return AuthorizationResult(
            decision=DENY,
            reason_codes=["authorities.insufficient"],
            summary="{} holds none of: {}".format(auth.principal, ", ".join(sorted(required))),
            authorities=required,
        )
