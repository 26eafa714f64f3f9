from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, Self, cast, final

from ._cardinality import CardinalityTracker
from ._chain import GeneratorChain
from ._coordinator import ResolutionCoordinator
from ._generators import InteractionGenerator, Response, StubGenerator
from ._matchers import AnyArguments, ArgumentMatcher, CallMatcher, ensure_member
from ._verification import VerificationReport

log = logging.getLogger(__name__)


@dataclass(frozen=False, kw_only=True, slots=True)
class Expectation:
    method_name: str
    stub: bool = False
    awaitable: bool = False
    any_args: bool = False
    args: tuple[Any, ...] = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)
    response: Response = field(default_factory=Response.default)
    minimum: int = 1
    maximum: int | None = 1

    def matcher(self) -> ArgumentMatcher:
        if self.any_args:
            return AnyArguments(self.method_name)
        return CallMatcher(self.method_name, self.args, self.kwargs)


class Registrar(Protocol):
    def register(self, expectation: Expectation) -> None: ...


class ReturnSetter:
    def __init__(self, expectation: Expectation, registrar: Registrar) -> None:
        self._expectation = expectation
        self._registrar = registrar

    def returns(self, *values: Any) -> None:
        value = values[0] if len(values) == 1 else values
        self._register(Response.value(value, awaitable=self._expectation.awaitable))

    def raises(self, exception: BaseException) -> None:
        self._register(Response.failure(exception, awaitable=self._expectation.awaitable))

    def answers(self, fn: Callable[..., Any]) -> None:
        self._register(Response.compute(fn, awaitable=self._expectation.awaitable))

    def returns_default(self) -> None:
        self._register(Response.default(awaitable=self._expectation.awaitable))

    def _register(self, response: Response) -> None:
        self._expectation.response = response
        self._registrar.register(self._expectation)


@final
class InteractionSetter(ReturnSetter):
    def times(self, n: int) -> Self:
        return self._bounds(n, n)

    def at_least(self, n: int) -> Self:
        return self._bounds(n, None)

    def at_most(self, n: int) -> Self:
        return self._bounds(0, n)

    def between(self, minimum: int, maximum: int) -> Self:
        return self._bounds(minimum, maximum)

    def any_times(self) -> Self:
        return self._bounds(0, None)

    def never(self) -> None:
        self._bounds(0, 0).returns_default()

    def _bounds(self, minimum: int, maximum: int | None) -> Self:
        self._expectation.minimum = minimum
        self._expectation.maximum = maximum
        return self


@final
class CallArgsSetter[S: ReturnSetter]:
    def __init__(
        self,
        expectation: Expectation,
        registrar: Registrar,
        setter: Callable[[Expectation, Registrar], S],
    ) -> None:
        self._expectation = expectation
        self._registrar = registrar
        self._setter = setter

    def called_with(self, *args: Any, **kwargs: Any) -> S:
        return self._configure(args, kwargs, awaitable=False)

    def awaited_with(self, *args: Any, **kwargs: Any) -> S:
        return self._configure(args, kwargs, awaitable=True)

    def called_with_any(self) -> S:
        self._expectation.any_args = True
        return self._configure((), {}, awaitable=False)

    def awaited_with_any(self) -> S:
        self._expectation.any_args = True
        return self._configure((), {}, awaitable=True)

    def _configure(self, args: tuple[Any, ...], kwargs: dict[str, Any], *, awaitable: bool) -> S:
        self._expectation.args = args
        self._expectation.kwargs = kwargs
        self._expectation.awaitable = awaitable
        return self._setter(self._expectation, self._registrar)


@final
class MethodProxy[S: ReturnSetter]:
    def __init__(
        self,
        method_name: str,
        registrar: Registrar,
        setter: Callable[[Expectation, Registrar], S],
        *,
        stub: bool,
    ) -> None:
        self._method_name = method_name
        self._registrar = registrar
        self._setter = setter
        self._stub = stub

    def __call__(self) -> CallArgsSetter[S]:
        return CallArgsSetter(
            Expectation(method_name=self._method_name, stub=self._stub),
            self._registrar,
            self._setter,
        )


@final
class ExpectationBuilder[S: ReturnSetter]:
    def __init__(
        self,
        registrar: Registrar,
        target: type[Any],
        setter: Callable[[Expectation, Registrar], S],
        *,
        stub: bool,
    ) -> None:
        self._registrar = registrar
        self._target = target
        self._setter = setter
        self._stub = stub

    def __getattr__(self, name: str) -> MethodProxy[S]:
        if name.startswith("_"):
            raise AttributeError(
                f"Cannot set expectations on private attribute: {name}"
            )
        ensure_member(self._target, name)
        return MethodProxy(name, self._registrar, self._setter, stub=self._stub)


@final
class MockController[T]:
    def __init__(
        self,
        target: type[T],
        *,
        coordinator: ResolutionCoordinator,
        strict: bool | None = None,
        spy: T | None = None,
        name: str | None = None,
    ) -> None:
        self._target = target
        self._coordinator = coordinator
        self._mock = cast(
            T, coordinator.register_mock(target, name=name, strict=strict, spy=spy)
        )

    def register(self, expectation: Expectation) -> None:
        matcher = expectation.matcher()
        if expectation.stub:
            self.chain.append(StubGenerator(matcher=matcher, response=expectation.response))
        else:
            tracker = CardinalityTracker(expectation.minimum, expectation.maximum)
            self.chain.append(
                InteractionGenerator(
                    matcher=matcher, response=expectation.response, tracker=tracker
                )
            )
        log.debug("registered %r on %r", expectation, self._mock)

    @property
    def mock(self) -> T:
        return self._mock

    @property
    def chain(self) -> GeneratorChain:
        return self._coordinator.chain_for(self._mock)

    @property
    def target(self) -> type[T]:
        return self._target

    def report(self) -> VerificationReport:
        return self._coordinator.verify(self._mock)

    def verify(self) -> None:
        self.report().raise_for_failures()

    def reset(self) -> None:
        self._coordinator.reset(self._mock)

    def release(self) -> None:
        self._coordinator.release(self._mock)


@final
class Mockchain[T]:
    """Test double for ``target`` backed by a generator chain.

    Calls on the mock are answered by registered expectations and stubs in
    registration order, then by the spied instance (if any), then by a
    type-appropriate default. Strict mocks raise on calls that only the
    default could answer.
    """

    def __init__(
        self,
        target: type[T],
        *,
        strict: bool | None = None,
        spy: T | None = None,
        name: str | None = None,
        coordinator: ResolutionCoordinator | None = None,
    ) -> None:
        self._owned = coordinator is None
        self._ctrl = MockController(
            target,
            coordinator=coordinator if coordinator is not None else ResolutionCoordinator(),
            strict=strict,
            spy=spy,
            name=name,
        )

    @classmethod
    def spy_on(
        cls,
        instance: T,
        *,
        strict: bool | None = None,
        name: str | None = None,
        coordinator: ResolutionCoordinator | None = None,
    ) -> Mockchain[T]:
        return cls(
            type(instance), strict=strict, spy=instance, name=name, coordinator=coordinator
        )

    def get_mock(self) -> T:
        return self._ctrl.mock

    def expect(self) -> ExpectationBuilder[InteractionSetter]:
        return ExpectationBuilder(self._ctrl, self._ctrl.target, InteractionSetter, stub=False)

    def stub(self) -> ExpectationBuilder[ReturnSetter]:
        return ExpectationBuilder(self._ctrl, self._ctrl.target, ReturnSetter, stub=True)

    @property
    def chain(self) -> GeneratorChain:
        return self._ctrl.chain

    def report(self) -> VerificationReport:
        return self._ctrl.report()

    def verify(self) -> None:
        self._ctrl.verify()

    def reset(self) -> None:
        self._ctrl.reset()

    def __enter__(self) -> Mockchain[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        _ = exc_val, exc_tb
        try:
            if exc_type is None:
                self.verify()
        finally:
            self._close()

    def _close(self) -> None:
        # a shared coordinator releases its mocks when it is closed
        if self._owned:
            self._ctrl.release()

    async def __aenter__(self) -> Mockchain[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        _ = exc_val, exc_tb
        try:
            if exc_type is None:
                self.verify()
        finally:
            self._close()
