from __future__ import annotations

import inspect
import types
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from .methods import unwrap_function


@dataclass(frozen=True)
class MethodInvocation:
    """
    One intercepted call: the method, and the object it was invoked on.

    `target_class` overrides the runtime type derived from `this`
    (classmethods are invoked on the class itself).
    """

    method: Callable[..., Any]
    this: Any = None
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    target_class: Optional[type] = None

    @classmethod
    def of(cls, bound: Callable[..., Any], *args: Any, **kwargs: Any) -> "MethodInvocation":
        """
        Describe a call to a bound method (or a plain function) with the given arguments.
        """
        if inspect.ismethod(bound):
            owner = bound.__self__
            if isinstance(owner, type):
                return cls(method=bound.__func__, this=None, args=args, kwargs=kwargs, target_class=owner)
            return cls(method=bound.__func__, this=owner, args=args, kwargs=kwargs)
        return cls(method=bound, args=args, kwargs=kwargs)

    @property
    def function(self) -> types.FunctionType:
        return unwrap_function(self.method)

    @property
    def target_type(self) -> Optional[type]:
        if self.target_class is not None:
            return self.target_class
        return type(self.this) if self.this is not None else None

    def proceed(self) -> Any:
        fn = self.function
        if self.target_class is not None:
            attr = inspect.getattr_static(self.target_class, fn.__name__, None)
            if isinstance(attr, classmethod):
                return fn(self.target_class, *self.args, **self.kwargs)
        if self.this is not None:
            return fn(self.this, *self.args, **self.kwargs)
        return fn(*self.args, **self.kwargs)


@dataclass(frozen=True)
class MethodClassKey:
    """
    Cache key: the plain function plus the runtime type it was invoked on.
    """

    method: types.FunctionType
    target_type: Optional[type] = None

    @classmethod
    def for_invocation(cls, invocation: MethodInvocation) -> "MethodClassKey":
        return cls(method=unwrap_function(invocation.method), target_type=invocation.target_type)
