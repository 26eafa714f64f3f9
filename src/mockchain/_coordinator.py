"""Per-call entry point of the engine and the boundary for verification."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from functools import partial
from typing import Any, final

from ._chain import GeneratorChain
from ._config import MockSettings
from ._errors import MockchainError, UnexpectedCallError
from ._generators import (
    DefaultGenerator,
    InteractionGenerator,
    SpyGenerator,
    StubGenerator,
)
from ._invocation import Invocation
from ._proxy import MockProxy, mock_id_of
from ._results import Produced
from ._verification import Problem, UnsatisfiedExpectation, VerificationReport

log = logging.getLogger(__name__)


@dataclass(kw_only=True, slots=True)
class _MockState:
    mock_id: int
    name: str
    target: type[Any]
    strict: bool
    spy: SpyGenerator | None
    chain: GeneratorChain
    proxy: MockProxy
    excess: list[tuple[Invocation, InteractionGenerator]] = field(default_factory=list)
    nested: dict[type[Any], MockProxy] = field(default_factory=dict)


@final
class ResolutionCoordinator:
    """Resolves calls for every mock registered with it.

    A coordinator owns the generator chains of its mocks. Closing it (or
    leaving its ``with`` block) releases them, so verification state does not
    outlive the test that created it.
    """

    def __init__(self, settings: MockSettings | None = None) -> None:
        self.settings = settings if settings is not None else MockSettings.from_env()
        self._mocks: dict[int, _MockState] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def register_mock(
        self,
        target: type[Any],
        *,
        name: str | None = None,
        strict: bool | None = None,
        spy: Any = None,
    ) -> Any:
        with self._lock:
            mock_id = next(self._ids)
            name = name or f"{target.__qualname__}#{mock_id}"
            spy_generator = SpyGenerator(delegate=spy) if spy is not None else None
            state = _MockState(
                mock_id=mock_id,
                name=name,
                target=target,
                strict=self.settings.strict if strict is None else strict,
                spy=spy_generator,
                chain=self._new_chain(mock_id, spy_generator),
                proxy=MockProxy(mock_id, name, target, self),
            )
            self._mocks[mock_id] = state

        log.debug("registered mock %s (strict=%s, spy=%s)", name, state.strict, spy is not None)
        return state.proxy

    def chain_for(self, mock: Any) -> GeneratorChain:
        return self._state(mock_id_of(mock)).chain

    def is_strict(self, mock: Any) -> bool:
        return self._state(mock_id_of(mock)).strict

    def invoke(self, invocation: Invocation) -> Any:
        state = self._state(invocation.mock_id)
        chain = state.chain
        resolution = chain.answer(invocation)

        if resolution is None:
            # checked before the spied object or the default stage runs
            self._on_unanswered(state, chain, invocation)
            resolution = chain.fallback(invocation)

        log.debug(
            "%s on %s answered by %s",
            invocation.member,
            state.name,
            type(resolution.generator).__name__,
        )
        return _settle(resolution.result)

    def verify(self, *mocks: Any) -> VerificationReport:
        with self._lock:
            if mocks:
                states = self._with_nested([self._state(mock_id_of(m)) for m in mocks])
            else:
                states = list(self._mocks.values())
            excess = {state.mock_id: list(state.excess) for state in states}

        entries: list[UnsatisfiedExpectation] = []
        checked = 0
        for state in states:
            for interaction in state.chain.interactions():
                checked += 1
                tracker = interaction.tracker
                if tracker.is_satisfied():
                    continue
                entries.append(
                    UnsatisfiedExpectation(
                        mock_name=state.name,
                        member=interaction.member,
                        problem=Problem.MISSING,
                        expected=tracker.describe(),
                        count=tracker.count,
                        shortfall=max(tracker.minimum - tracker.count, 0),
                    )
                )
            for _, interaction in excess[state.mock_id]:
                entries.append(
                    UnsatisfiedExpectation(
                        mock_name=state.name,
                        member=interaction.member,
                        problem=Problem.EXCESS,
                        expected=interaction.tracker.describe(),
                        count=1,
                    )
                )

        report = VerificationReport(unsatisfied=tuple(entries), checked=checked)
        log.info(
            "verified %d expectation(s) on %d mock(s): %d problem(s)",
            checked,
            len(states),
            len(entries),
        )
        return report

    def reset(self, mock: Any) -> None:
        with self._lock:
            state = self._state(mock_id_of(mock))
            for child in state.nested.values():
                self._release(mock_id_of(child))
            state.nested.clear()
            state.excess.clear()
            state.chain = self._new_chain(state.mock_id, state.spy)
        log.debug("reset mock %s", state.name)

    def release(self, mock: Any) -> None:
        with self._lock:
            self._release(mock_id_of(mock))

    def close(self) -> None:
        with self._lock:
            released = len(self._mocks)
            self._mocks.clear()
        log.debug("closed coordinator, released %d mock(s)", released)

    def __enter__(self) -> ResolutionCoordinator:
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
                self.verify().raise_for_failures()
        finally:
            self.close()

    def _state(self, mock_id: int) -> _MockState:
        state = self._mocks.get(mock_id)
        if state is None:
            raise MockchainError(f"mock #{mock_id} is not registered or has been released")
        return state

    def _release(self, mock_id: int) -> None:
        state = self._mocks.pop(mock_id, None)
        if state is None:
            return
        for child in state.nested.values():
            self._release(mock_id_of(child))
        log.debug("released mock %s", state.name)

    def _with_nested(self, states: list[_MockState]) -> list[_MockState]:
        collected: dict[int, _MockState] = {}
        pending = list(states)
        while pending:
            state = pending.pop(0)
            if state.mock_id in collected:
                continue
            collected[state.mock_id] = state
            pending.extend(
                self._mocks[mock_id_of(child)]
                for child in state.nested.values()
                if mock_id_of(child) in self._mocks
            )
        return list(collected.values())

    def _new_chain(self, mock_id: int, spy: SpyGenerator | None) -> GeneratorChain:
        nested = partial(self._nested_mock, mock_id) if self.settings.nested_mocks else None
        return GeneratorChain(default=DefaultGenerator(nested=nested), spy=spy)

    def _nested_mock(self, parent_id: int, target: type[Any]) -> Any:
        with self._lock:
            parent = self._state(parent_id)
            existing = parent.nested.get(target)
            if existing is not None:
                return existing
            child = self.register_mock(
                target,
                name=f"{parent.name}->{target.__qualname__}",
                strict=False,
            )
            parent.nested[target] = child
        log.debug("created nested mock %r for %s", child, parent.name)
        return child

    def _on_unanswered(
        self, state: _MockState, chain: GeneratorChain, invocation: Invocation
    ) -> None:
        # a spied object counts as an explicit answer for strict mocks
        if state.strict and chain.spy is None:
            raise _unexpected_call(chain, invocation)

        exhausted = next(
            (
                g
                for g in chain.interactions()
                if g.tracker.exhausted and g.matcher.matches(invocation)
            ),
            None,
        )
        if exhausted is None:
            return
        if state.strict:
            raise UnexpectedCallError(
                f"Unexpected call to {invocation.describe()}. "
                f"It exceeds the expected cardinality ({exhausted.tracker.describe()})."
            )

        with self._lock:
            state.excess.append((invocation, exhausted))
        log.warning(
            "call to %s on %s exceeds expected cardinality (%s)",
            invocation.describe(),
            state.name,
            exhausted.tracker.describe(),
        )


def _unexpected_call(chain: GeneratorChain, invocation: Invocation) -> UnexpectedCallError:
    for generator in chain.snapshot():
        if not isinstance(generator, (StubGenerator, InteractionGenerator)):
            continue
        if generator.matcher.member != invocation.member:
            continue
        if isinstance(generator, InteractionGenerator) and generator.tracker.exhausted:
            continue

        diffs = generator.matcher.mismatches(invocation)
        if diffs:
            return UnexpectedCallError(
                f"Unexpected args for '{invocation.member}':\n" + "\n".join(diffs)
            )

    return UnexpectedCallError(
        f"Unexpected call to {invocation.describe()}. No expectation was set for this call."
    )


def _settle(result: Produced) -> Any:
    if result.awaitable:
        return _settle_async(result)
    return result.unwrap()


async def _settle_async(result: Produced) -> Any:
    return result.unwrap()
