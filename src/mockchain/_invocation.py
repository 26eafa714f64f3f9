from __future__ import annotations

import functools
import inspect
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, final

UNDECLARED: Any = inspect.Signature.empty


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Invocation:
    """One intercepted call on a mock."""

    mock_id: int
    mock_name: str
    target: type[Any]
    member: str
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    return_type: Any = UNDECLARED
    is_async: bool = False

    @classmethod
    def of(
        cls,
        *,
        mock_id: int,
        mock_name: str,
        target: type[Any],
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Invocation:
        return_type, is_async = member_signature(target, member)
        return cls(
            mock_id=mock_id,
            mock_name=mock_name,
            target=target,
            member=member,
            args=tuple(args),
            kwargs=MappingProxyType(dict(kwargs)),
            return_type=return_type,
            is_async=is_async,
        )

    def describe(self) -> str:
        return f"'{self.member}' with args={self.args}, kwargs={dict(self.kwargs)}"


@functools.lru_cache(maxsize=1024)
def member_signature(target: type[Any], member: str) -> tuple[Any, bool]:
    """Declared return type of ``target.member`` and whether it is a coroutine function.

    Forward references that cannot be evaluated are kept as their raw
    annotation so the default stage can report them.
    """
    attr = getattr(target, member, None)
    if attr is None or not callable(attr):
        return UNDECLARED, False

    is_async = inspect.iscoroutinefunction(attr)
    try:
        hints = typing.get_type_hints(attr, include_extras=True)
    except (NameError, TypeError, AttributeError):
        # a parameter annotation may be the unresolvable one
        return _return_annotation(attr), is_async

    return hints.get("return", UNDECLARED), is_async


def _return_annotation(attr: Any) -> Any:
    try:
        annotation = inspect.get_annotations(attr).get("return", UNDECLARED)
    except TypeError:
        return UNDECLARED
    if not isinstance(annotation, str):
        return annotation

    namespace = getattr(inspect.unwrap(attr), "__globals__", None)
    if namespace is None:
        return annotation
    try:
        return eval(annotation, namespace)  # noqa: S307
    except (NameError, AttributeError, SyntaxError, TypeError):
        return annotation
