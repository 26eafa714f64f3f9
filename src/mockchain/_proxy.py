from __future__ import annotations

from typing import Any, Protocol, final

from ._invocation import Invocation


class Invoker(Protocol):
    def invoke(self, invocation: Invocation) -> Any: ...


@final
class MockProxy:
    """Stand-in object that turns attribute calls into invocation records."""

    __slots__ = ("_invoker", "_mock_id", "_mock_name", "_target")

    def __init__(self, mock_id: int, mock_name: str, target: type[Any], invoker: Invoker) -> None:
        self._mock_id = mock_id
        self._mock_name = mock_name
        self._target = target
        self._invoker = invoker

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )

        def _mock_method(*args: Any, **kwargs: Any) -> Any:
            invocation = Invocation.of(
                mock_id=self._mock_id,
                mock_name=self._mock_name,
                target=self._target,
                member=name,
                args=args,
                kwargs=kwargs,
            )
            return self._invoker.invoke(invocation)

        _mock_method.__name__ = name
        _mock_method.__qualname__ = f"{self._mock_name}.{name}"
        return _mock_method

    def __repr__(self) -> str:
        return f"<mock {self._mock_name}>"


def mock_id_of(mock: Any) -> int:
    if not isinstance(mock, MockProxy):
        raise TypeError(f"{mock!r} is not a mock")
    return mock._mock_id  # noqa: SLF001
