from __future__ import annotations

import inspect
from typing import Any, Protocol, final

from ._errors import ConfigurationError
from ._invocation import Invocation


class ArgumentMatcher(Protocol):
    member: str

    def matches(self, invocation: Invocation) -> bool: ...

    def mismatches(self, invocation: Invocation) -> list[str]: ...


@final
class CallMatcher:
    """Matches calls to ``member`` whose arguments equal the expected ones.

    Positional and keyword arguments are both normalized to parameter names
    of the target's signature, so ``f(1, b=2)`` matches ``f(a=1, b=2)``.
    """

    __slots__ = ("args", "kwargs", "member")

    def __init__(self, member: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self.member = member
        self.args = args
        self.kwargs = kwargs

    def matches(self, invocation: Invocation) -> bool:
        return invocation.member == self.member and not self.mismatches(invocation)

    def mismatches(self, invocation: Invocation) -> list[str]:
        want_kwargs = _as_keywords(invocation.target, self.member, self.args)
        want_kwargs.update(self.kwargs)

        got_kwargs = _as_keywords(invocation.target, self.member, invocation.args)
        got_kwargs.update(invocation.kwargs)

        diffs: list[str] = []

        for key, want_value in want_kwargs.items():
            if key not in got_kwargs:
                diffs.append(f"expected {key}={want_value!r}, but '{key}' is missing")
                continue

            got_value = got_kwargs[key]
            if got_value != want_value:
                diffs.append(f"expected {key}={want_value!r}, but got {key}={got_value!r}")

        for key, got_value in got_kwargs.items():
            if key not in want_kwargs:
                diffs.append(f"unexpected {key}={got_value!r}")

        return diffs

    def __repr__(self) -> str:
        return f"CallMatcher({self.member!r}, args={self.args!r}, kwargs={self.kwargs!r})"


@final
class AnyArguments:
    __slots__ = ("member",)

    def __init__(self, member: str) -> None:
        self.member = member

    def matches(self, invocation: Invocation) -> bool:
        return invocation.member == self.member

    def mismatches(self, invocation: Invocation) -> list[str]:
        _ = invocation
        return []

    def __repr__(self) -> str:
        return f"AnyArguments({self.member!r})"


def ensure_member(target: type[Any], member: str) -> None:
    if getattr(target, member, None) is None:
        raise ConfigurationError(f"Method '{member}' not found on target type {target}")


def _as_keywords(target: type[Any], member: str, args: tuple[Any, ...]) -> dict[str, Any]:
    if not args:
        return {}

    target_method = getattr(target, member, None)
    if target_method is None:
        return {f"*{i}": arg for i, arg in enumerate(args)}

    try:
        signature = inspect.signature(target_method)
    except (TypeError, ValueError):
        return {f"*{i}": arg for i, arg in enumerate(args)}

    params = [p for p in signature.parameters.values() if p.name != "self"]
    named = [
        p.name
        for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
    ]
    variadic = next((p.name for p in params if p.kind is p.VAR_POSITIONAL), None)

    bound = dict(zip(named, args))
    for i, arg in enumerate(args[len(named) :]):
        bound[f"{variadic or '*'}[{i}]"] = arg
    return bound
