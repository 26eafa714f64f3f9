"""Type-aware fallback values for the terminal stage of a generator chain."""

from __future__ import annotations

import collections
import collections.abc
import enum
import types
import typing
from collections.abc import Callable
from decimal import Decimal
from fractions import Fraction
from typing import Any

from ._errors import DefaultValueError
from ._invocation import UNDECLARED

type NestedMockFactory = Callable[[type[Any]], Any]

_ZERO_VALUES: dict[Any, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
    Decimal: Decimal(0),
    Fraction: Fraction(0),
}

_EMPTY_FACTORIES: dict[Any, Callable[[], Any]] = {
    list: list,
    dict: dict,
    set: set,
    frozenset: frozenset,
    bytearray: bytearray,
    collections.deque: collections.deque,
    collections.OrderedDict: collections.OrderedDict,
    collections.defaultdict: collections.defaultdict,
    collections.Counter: collections.Counter,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Iterator: lambda: iter(()),
    collections.abc.Generator: lambda: iter(()),
}

_NONE_TYPES = (None, types.NoneType, Any, object, UNDECLARED)


def default_value(return_type: Any, *, nested: NestedMockFactory | None = None) -> Any:
    """Zero, empty or identity value for ``return_type``.

    Class types with no known empty value get a nested mock from ``nested``.
    Raises:
        DefaultValueError: if no default can be derived.
    """
    if any(return_type is t for t in _NONE_TYPES):
        return None

    if isinstance(return_type, str):
        raise DefaultValueError(f"cannot derive a default for unresolved annotation {return_type!r}")

    if return_type is typing.NoReturn or return_type is typing.Never:
        raise DefaultValueError("a member declared as never returning has no default")

    if isinstance(return_type, typing.TypeVar):
        bound = return_type.__bound__
        return None if bound is None else default_value(bound, nested=nested)

    origin = typing.get_origin(return_type)
    if origin is not None:
        return _default_for_generic(return_type, origin, nested)

    if isinstance(return_type, type):
        return _default_for_class(return_type, nested)

    raise DefaultValueError(f"cannot derive a default for {return_type!r}")


def _default_for_generic(tp: Any, origin: Any, nested: NestedMockFactory | None) -> Any:
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return default_value(args[0], nested=nested)

    if origin is typing.Literal:
        return args[0]

    if origin is typing.Union or origin is types.UnionType:
        if types.NoneType in args:
            return None
        return default_value(args[0], nested=nested)

    if origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis) or args == ((),):
            return ()
        return tuple(default_value(arg, nested=nested) for arg in args)

    if origin is collections.abc.Callable:
        result_type = args[-1] if args else None
        return lambda *_, **__: default_value(result_type, nested=nested)

    if origin is type:
        raise DefaultValueError(f"cannot derive a default for {tp!r}")

    factory = _EMPTY_FACTORIES.get(origin)
    if factory is not None:
        return factory()

    if isinstance(origin, type):
        return _default_for_class(origin, nested)

    raise DefaultValueError(f"cannot derive a default for {tp!r}")


def _default_for_class(cls: type[Any], nested: NestedMockFactory | None) -> Any:
    if cls in _ZERO_VALUES:
        return _ZERO_VALUES[cls]

    factory = _EMPTY_FACTORIES.get(cls)
    if factory is not None:
        return factory()

    if issubclass(cls, enum.Enum):
        return next(iter(cls), None)

    if cls is collections.abc.Callable:
        return lambda *_, **__: None

    if nested is None:
        raise DefaultValueError(f"cannot derive a default for {cls.__qualname__} without nested mocks")

    return nested(cls)
