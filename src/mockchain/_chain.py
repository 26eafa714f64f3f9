from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import final

from ._errors import ConfigurationError, MockchainError
from ._generators import (
    GENERATOR_TYPES,
    DefaultGenerator,
    InteractionGenerator,
    ResultGenerator,
    SpyGenerator,
    resolve,
)
from ._invocation import Invocation
from ._results import NotApplicable, Produced

log = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class Resolution:
    result: Produced
    generator: ResultGenerator


@final
class GeneratorChain:
    """Ordered result generators of one mock.

    Generators are consulted in registration order and the first one that
    produces a result wins. After the registered generators comes a fixed
    terminal stage: the spy delegate if there is one, otherwise the default
    generator.

    The registered generators live in a tuple that ``append`` replaces under
    a lock; ``resolve`` reads a single snapshot and never locks.
    """

    def __init__(
        self,
        *,
        default: DefaultGenerator | None = None,
        spy: SpyGenerator | None = None,
    ) -> None:
        self._generators: tuple[ResultGenerator, ...] = ()
        self._append_lock = threading.Lock()
        self.default = default if default is not None else DefaultGenerator()
        self.spy = spy

    def append(self, generator: ResultGenerator) -> None:
        if isinstance(generator, DefaultGenerator):
            raise ConfigurationError("the default generator is implicit and cannot be appended")
        if not isinstance(generator, GENERATOR_TYPES):
            raise ConfigurationError(f"not a result generator: {generator!r}")

        with self._append_lock:
            self._generators = (*self._generators, generator)
            position = len(self._generators)
        log.debug("appended %s at position %d", type(generator).__name__, position)

    def snapshot(self) -> tuple[ResultGenerator, ...]:
        return self._generators

    def interactions(self) -> list[InteractionGenerator]:
        return [g for g in self._generators if isinstance(g, InteractionGenerator)]

    def __len__(self) -> int:
        return len(self._generators)

    def resolve(self, invocation: Invocation) -> Resolution:
        resolution = self.answer(invocation)
        if resolution is not None:
            return resolution
        return self.fallback(invocation)

    def answer(self, invocation: Invocation) -> Resolution | None:
        """Resolve against the registered generators only."""
        for generator in self._generators:
            result = resolve(generator, invocation, fallback=self.default)
            if isinstance(result, NotApplicable):
                continue
            return Resolution(result, generator)
        return None

    def fallback(self, invocation: Invocation) -> Resolution:
        """Resolve against the terminal stage: the spy if any, else the default."""
        terminal = self.spy if self.spy is not None else self.default
        result = resolve(terminal, invocation, fallback=self.default)
        if isinstance(result, NotApplicable):
            raise MockchainError(
                f"default generator produced no value for {invocation.describe()}"
            )
        return Resolution(result, terminal)
