from __future__ import annotations

import types
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from .errors import AnnotationConfigurationError, ValidationError
from .methods import declared_function, declaring_class, qualified_name, unwrap_function


T = TypeVar("T")

_ATTR = "__secured__"


@dataclass(frozen=True)
class Secured:
    """
    Access-control metadata: the authorities allowed to invoke an element.
    """

    value: tuple[str, ...]

    @property
    def authorities(self) -> frozenset[str]:
        return frozenset(self.value)


def secured(*authorities: str) -> Callable[[T], T]:
    """
    Declare the authorities required to call a function, or any method of a class.

        @secured("ROLE_ADMIN", "ROLE_BILLING")
        def void(self, invoice_id): ...

    Works on plain functions, staticmethod/classmethod objects and classes.
    The element is returned unchanged; the annotation is recorded on it.
    """
    if not authorities:
        raise ValidationError(code="secured.invalid", message="@secured requires at least one authority")
    for a in authorities:
        if not isinstance(a, str) or not a:
            raise ValidationError(
                code="secured.invalid",
                message="Authorities must be non-empty strings",
                data={"authority": repr(a)},
            )
    annotation = Secured(value=tuple(authorities))

    def decorate(element: T) -> T:
        target: Any = element.__func__ if isinstance(element, (staticmethod, classmethod)) else element
        if not isinstance(target, (type, types.FunctionType)):
            raise ValidationError(
                code="secured.invalid",
                message=f"@secured can only decorate functions and classes, got: {element!r}",
            )
        setattr(target, _ATTR, declared_annotations(target) + (annotation,))
        return element

    return decorate


def declared_annotations(element: Any) -> tuple[Secured, ...]:
    """
    Annotations stamped directly on the element (inherited class attributes excluded).
    """
    if isinstance(element, type):
        return tuple(element.__dict__.get(_ATTR, ()))
    return tuple(getattr(element, _ATTR, ()))


class AnnotationLookup:
    """
    Finds the single applicable @secured annotation for a method or a class.

    Searches level by level; the closest level holding any annotation wins:
    - method: the function, then the same-named functions declared on the
      direct bases of its declaring class, then their bases, and so on.
    - type: the class, then its direct bases, and so on.

    Distinct annotations on the same level are a configuration error.
    Subclasses provide `declared()`, the annotations attached directly to one
    function or class.
    """

    def declared(self, element: Any) -> Sequence[Secured]:
        raise NotImplementedError

    def find_method_annotation(self, method: Any, target_type: Optional[type] = None) -> Optional[Secured]:
        fn = unwrap_function(method)
        found = self._unique([fn], subject=fn)
        if found is not None:
            return found

        owner = declaring_class(fn, target_type)
        if owner is None:
            return None
        for level in _base_levels(owner):
            candidates = [declared_function(klass, fn.__name__) for klass in level]
            found = self._unique([c for c in candidates if c is not None], subject=fn)
            if found is not None:
                return found
        return None

    def find_type_annotation(self, cls: Optional[type]) -> Optional[Secured]:
        if cls is None:
            return None
        found = self._unique([cls], subject=cls)
        if found is not None:
            return found
        for level in _base_levels(cls):
            found = self._unique(level, subject=cls)
            if found is not None:
                return found
        return None

    def _unique(self, elements: Sequence[Any], *, subject: Any) -> Optional[Secured]:
        distinct: List[Secured] = []
        for element in elements:
            for annotation in self.declared(element):
                if all(annotation.authorities != d.authorities for d in distinct):
                    distinct.append(annotation)
        if len(distinct) > 1:
            raise AnnotationConfigurationError(
                code="annotation.ambiguous",
                message=f"Found more than one @secured annotation on {qualified_name(subject)}",
                data={
                    "element": qualified_name(subject),
                    "authorities": [sorted(d.authorities) for d in distinct],
                },
            )
        return distinct[0] if distinct else None


def _base_levels(cls: type):
    """
    Yield the direct bases of `cls`, then their bases, one level at a time.
    """
    seen = {cls, object}
    level = [cls]
    while level:
        next_level: List[type] = []
        for klass in level:
            for base in klass.__bases__:
                if base not in seen:
                    seen.add(base)
                    next_level.append(base)
        if next_level:
            yield next_level
        level = next_level


class AttributeAnnotationLookup(AnnotationLookup):
    """
    Reads annotations recorded by the @secured decorator.
    """

    def declared(self, element: Any) -> Sequence[Secured]:
        return declared_annotations(element)
