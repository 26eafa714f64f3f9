from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Final, final


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Produced:
    value: Any = None
    failure: BaseException | None = None
    awaitable: bool = False

    def unwrap(self) -> Any:
        if self.failure is not None:
            raise self.failure
        return self.value


@final
class NotApplicable:
    """A generator has no opinion about the invocation."""

    __slots__ = ()
    _instance: ClassVar[NotApplicable | None] = None

    def __new__(cls) -> NotApplicable:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Final = NotApplicable()

type Result = Produced | NotApplicable
