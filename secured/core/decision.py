from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional


GRANT = "grant"
DENY = "deny"
ABSTAIN = "abstain"


@dataclass(frozen=True)
class Authentication:
    principal: str
    authorities: FrozenSet[str] = frozenset()


AuthenticationSupplier = Callable[[], Optional[Authentication]]


@dataclass(frozen=True)
class AuthorizationResult:
    decision: str  # grant|deny|abstain
    reason_codes: List[str]
    summary: Optional[str] = None
    authorities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def granted(self) -> bool:
        return self.decision == GRANT

    @property
    def abstained(self) -> bool:
        """
        No opinion: the call is not governed by @secured metadata.
        """
        return self.decision == ABSTAIN

    @classmethod
    def abstain(cls, summary: str = "No @secured metadata applies") -> "AuthorizationResult":
        return cls(decision=ABSTAIN, reason_codes=["secured.not_present"], summary=summary)
