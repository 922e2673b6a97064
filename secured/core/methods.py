from __future__ import annotations

import sys
import types
from typing import Any, Optional

from .errors import InvocationError


def unwrap_function(method: Any) -> types.FunctionType:
    """
    Reduce bound methods and staticmethod/classmethod objects to the plain function.
    """
    if isinstance(method, (staticmethod, classmethod)):
        method = method.__func__
    if isinstance(method, types.MethodType):
        method = method.__func__
    if not isinstance(method, types.FunctionType):
        raise InvocationError(
            code="invocation.invalid",
            message=f"Cannot resolve a function from: {method!r}",
        )
    return method


def declared_function(klass: type, name: str) -> Optional[types.FunctionType]:
    """
    Function defined under `name` in the class's own namespace, if any.
    """
    value = vars(klass).get(name)
    if isinstance(value, (staticmethod, classmethod)):
        value = value.__func__
    return value if isinstance(value, types.FunctionType) else None


def qualified_name(obj: Any) -> str:
    return f"{obj.__module__}:{obj.__qualname__}"


def _is_private(name: str) -> bool:
    return name.startswith("__") and not name.endswith("__")


def _class_from_qualname(fn: types.FunctionType) -> Optional[type]:
    parts = fn.__qualname__.split(".")[:-1]
    if not parts or "<locals>" in parts:
        return None
    obj: Any = sys.modules.get(fn.__module__)
    for part in parts:
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj if isinstance(obj, type) else None


def declaring_class(method: Any, target_type: Optional[type] = None) -> Optional[type]:
    """
    Class whose namespace defines the function.

    Searches the target type's MRO first, then follows the function's
    __qualname__ through its module. Functions defined in local scopes outside
    of `target_type` have no resolvable declaring class.
    """
    fn = unwrap_function(method)
    if target_type is not None:
        for klass in target_type.__mro__:
            if declared_function(klass, fn.__name__) is fn:
                return klass
    return _class_from_qualname(fn)


def most_specific_method(method: Any, target_type: Optional[type]) -> types.FunctionType:
    """
    The implementation actually bound on `target_type` for the given method.

    Falls back to the method itself when there is no target type, the method
    is name-mangled private, the method is not reachable on the target type's
    MRO, or nothing overrides it.
    """
    fn = unwrap_function(method)
    if target_type is None or _is_private(fn.__name__):
        return fn

    declarer = declaring_class(fn, target_type)
    if declarer is None or declarer not in target_type.__mro__:
        return fn

    for klass in target_type.__mro__:
        if fn.__name__ in vars(klass):
            return declared_function(klass, fn.__name__) or fn
    return fn
