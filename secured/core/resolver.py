from __future__ import annotations

import logging
from typing import Any, FrozenSet, Optional

from .annotations import AnnotationLookup, AttributeAnnotationLookup, Secured
from .methods import declaring_class, most_specific_method, qualified_name

logger = logging.getLogger(__name__)


class SecuredAuthorityResolver:
    """
    Resolves the authorities required to call a method on a runtime type.

    - the implementation bound on the runtime type is inspected, not the
      declaration the call was dispatched through
    - method-level metadata takes precedence over class-level metadata
    - no metadata resolves to an empty set
    """

    def __init__(self, lookup: Optional[AnnotationLookup] = None):
        self._lookup = lookup or AttributeAnnotationLookup()

    @property
    def lookup(self) -> AnnotationLookup:
        return self._lookup

    def resolve(self, method: Any, target_type: Optional[type] = None) -> FrozenSet[str]:
        specific = most_specific_method(method, target_type)
        annotation = self._find_annotation(specific, target_type)
        authorities = annotation.authorities if annotation is not None else frozenset()
        logger.debug("Resolved %s on %r -> %s", qualified_name(specific), target_type, sorted(authorities))
        return authorities

    def _find_annotation(self, method: Any, target_type: Optional[type]) -> Optional[Secured]:
        annotation = self._lookup.find_method_annotation(method, target_type)
        if annotation is not None:
            return annotation
        return self._lookup.find_type_annotation(declaring_class(method, target_type))
