"""Result generators: the behavior sources a generator chain consults.

Each generator kind is a plain dataclass and ``resolve`` dispatches on the
kind. A generator answers either with a ``Produced`` result or with
``NO_VALUE``, and the ``NO_VALUE`` path has no side effects: no tracker is
touched and no delegate is called.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, final

from ._cardinality import CardinalityTracker
from ._defaults import NestedMockFactory, default_value
from ._invocation import Invocation
from ._matchers import ArgumentMatcher
from ._results import NO_VALUE, Produced, Result


class ResponseKind(enum.Enum):
    VALUE = "value"
    COMPUTE = "compute"
    RAISE = "raise"
    DEFAULT = "default"


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Response:
    kind: ResponseKind = ResponseKind.DEFAULT
    payload: Any = None
    awaitable: bool = False

    @classmethod
    def value(cls, value: Any, *, awaitable: bool = False) -> Response:
        return cls(kind=ResponseKind.VALUE, payload=value, awaitable=awaitable)

    @classmethod
    def compute(cls, fn: Callable[..., Any], *, awaitable: bool = False) -> Response:
        return cls(kind=ResponseKind.COMPUTE, payload=fn, awaitable=awaitable)

    @classmethod
    def failure(cls, exception: BaseException, *, awaitable: bool = False) -> Response:
        return cls(kind=ResponseKind.RAISE, payload=exception, awaitable=awaitable)

    @classmethod
    def default(cls, *, awaitable: bool = False) -> Response:
        return cls(kind=ResponseKind.DEFAULT, awaitable=awaitable)

    def produce(self, invocation: Invocation, fallback: DefaultGenerator) -> Produced:
        match self.kind:
            case ResponseKind.VALUE:
                return Produced(value=self.payload, awaitable=self.awaitable)
            case ResponseKind.COMPUTE:
                value = self.payload(*invocation.args, **invocation.kwargs)
                return Produced(value=value, awaitable=self.awaitable)
            case ResponseKind.RAISE:
                return Produced(failure=self.payload, awaitable=self.awaitable)
            case ResponseKind.DEFAULT:
                produced = fallback.produce(invocation)
                return Produced(
                    value=produced.value,
                    awaitable=self.awaitable or produced.awaitable,
                )


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class StubGenerator:
    matcher: ArgumentMatcher
    response: Response


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class InteractionGenerator:
    matcher: ArgumentMatcher
    response: Response = field(default_factory=Response.default)
    tracker: CardinalityTracker = field(default_factory=CardinalityTracker)

    @property
    def member(self) -> str:
        return self.matcher.member


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class SpyGenerator:
    delegate: Any


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class DefaultGenerator:
    nested: NestedMockFactory | None = None

    def produce(self, invocation: Invocation) -> Produced:
        value = default_value(invocation.return_type, nested=self.nested)
        return Produced(value=value, awaitable=invocation.is_async)


type ResultGenerator = StubGenerator | InteractionGenerator | SpyGenerator | DefaultGenerator

GENERATOR_TYPES = (StubGenerator, InteractionGenerator, SpyGenerator, DefaultGenerator)


def resolve(
    generator: ResultGenerator,
    invocation: Invocation,
    *,
    fallback: DefaultGenerator,
) -> Result:
    match generator:
        case StubGenerator(matcher=matcher, response=response):
            if not matcher.matches(invocation):
                return NO_VALUE
            return response.produce(invocation, fallback)

        case InteractionGenerator(matcher=matcher, response=response, tracker=tracker):
            # the matcher must run before accept() so a mismatch never counts
            if not matcher.matches(invocation) or not tracker.accept():
                return NO_VALUE
            return response.produce(invocation, fallback)

        case SpyGenerator(delegate=delegate):
            real_member = getattr(delegate, invocation.member)
            return Produced(value=real_member(*invocation.args, **invocation.kwargs))

        case DefaultGenerator():
            return generator.produce(invocation)

    raise TypeError(f"not a result generator: {generator!r}")
