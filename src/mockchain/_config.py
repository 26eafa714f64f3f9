"""Settings for mocks created by a coordinator.

Defaults can be overridden through environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import final

STRICT_ENV_VAR = "MOCKCHAIN_STRICT"
NESTED_MOCKS_ENV_VAR = "MOCKCHAIN_NESTED_MOCKS"

DEFAULT_STRICT = True
DEFAULT_NESTED_MOCKS = True

_FALSY = frozenset({"0", "false", "no", "off"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class MockSettings:
    # strict mocks fail on calls that only the default generator could answer
    strict: bool = DEFAULT_STRICT
    # class-typed returns of unanswered calls get a lenient nested mock
    nested_mocks: bool = DEFAULT_NESTED_MOCKS

    @classmethod
    def from_env(cls) -> MockSettings:
        return cls(
            strict=_env_flag(STRICT_ENV_VAR, DEFAULT_STRICT),
            nested_mocks=_env_flag(NESTED_MOCKS_ENV_VAR, DEFAULT_NESTED_MOCKS),
        )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default
