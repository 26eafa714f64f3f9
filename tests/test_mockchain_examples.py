from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypedDict, final

import pytest

from mockchain import (
    Mockchain,
    MockchainError,
    ResolutionCoordinator,
    UnexpectedCallError,
    VerificationError,
)


class UserRepository(Protocol):
    """User repository interface for the quick example."""

    def get_user(self, user_id: int) -> str: ...
    def save_user(self, name: str) -> bool: ...


class UserService:
    """User service that depends on UserRepository."""

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def greet_user(self, user_id: int) -> str:
        name = self.repo.get_user(user_id)
        return f"Hello, {name}!"

    def create_user(self, name: str) -> str:
        if self.repo.save_user(name):
            return "User created"
        raise RuntimeError("Failed to save user")


def test_quick_example_user_service() -> None:
    """Expectations are set before the code under test runs."""
    with Mockchain(UserRepository) as mock:
        mock.expect().get_user().called_with(42).returns("Alice")
        mock.expect().save_user().called_with("Bob").returns(True)
        mock.expect().save_user().called_with("").raises(RuntimeError("Invalid name"))

        service = UserService(mock.get_mock())

        assert service.greet_user(42) == "Hello, Alice!"
        assert service.create_user("Bob") == "User created"

        with pytest.raises(RuntimeError, match="Invalid name"):
            service.create_user("")
        # all expectations are verified on exit


class Calculator(Protocol):
    """Calculator interface for the stubbing examples."""

    def add(self, a: int, b: int) -> int: ...


def test_stub_returns_same_value_for_any_arguments() -> None:
    """A stub answers every matching call and is never verified."""
    with Mockchain(Calculator) as mock:
        mock.stub().add().called_with_any().returns(42)

        calc = mock.get_mock()
        assert calc.add(1, 2) == 42
        assert calc.add(-5, 100) == 42
        assert calc.add(a=0, b=0) == 42


def test_first_registered_generator_wins() -> None:
    """Overlapping generators resolve in registration order."""
    mock = Mockchain(Calculator)
    mock.stub().add().called_with(1, 1).returns(2)
    mock.stub().add().called_with_any().returns(0)
    mock.stub().add().called_with(1, 1).returns(99)

    calc = mock.get_mock()
    for _ in range(5):
        assert calc.add(1, 1) == 2
        assert calc.add(2, 2) == 0


def test_exhausted_expectation_falls_through_to_later_stub() -> None:
    """Once an expectation is used up, later generators answer."""
    with Mockchain(Calculator) as mock:
        mock.expect().add().called_with(1, 1).returns(2)
        mock.stub().add().called_with_any().returns(-1)

        calc = mock.get_mock()
        assert calc.add(1, 1) == 2
        assert calc.add(1, 1) == -1
        assert calc.add(3, 4) == -1


def test_restubbing_while_running() -> None:
    """Generators appended mid-test apply to subsequent calls."""
    mock = Mockchain(Calculator, strict=False)
    calc = mock.get_mock()

    assert calc.add(1, 2) == 0
    mock.stub().add().called_with(1, 2).returns(3)
    assert calc.add(1, 2) == 3


class Lookup(Protocol):
    """Lookup interface for the cardinality scenario."""

    def find(self, key: str) -> str: ...


def test_interaction_with_maximum_falls_back_to_default() -> None:
    """An exhausted expectation stops matching on a lenient mock."""
    mock = Mockchain(Lookup, strict=False)
    mock.expect().find().called_with("x").returns("found")

    lookup = mock.get_mock()
    assert lookup.find("y") == ""
    assert lookup.find("x") == "found"
    assert lookup.find("x") == ""


def test_unmatched_call_strict_versus_lenient() -> None:
    """Strict mocks fail fast where lenient mocks return the default."""
    strict = Mockchain(Lookup, strict=True)
    lenient = Mockchain(Lookup, strict=False)

    with pytest.raises(UnexpectedCallError):
        strict.get_mock().find("missing")

    assert lenient.get_mock().find("missing") == ""


@final
class Counter:
    """Real implementation wrapped by the spy examples."""

    def __init__(self) -> None:
        self.value = 0

    def increment(self, by: int = 1) -> int:
        self.value += by
        return self.value

    def explode(self) -> None:
        raise ValueError("real failure")


def test_spy_delegates_to_real_object() -> None:
    """Unstubbed calls on a spy run the real implementation."""
    real = Counter()
    with Mockchain.spy_on(real) as spy:
        counter = spy.get_mock()

        assert counter.increment() == 1
        assert counter.increment(by=5) == 6
        assert real.value == 6


def test_spy_stubs_take_precedence_over_real_calls() -> None:
    """Stubs registered on a spy shadow the real implementation."""
    real = Counter()
    spy = Mockchain.spy_on(real)
    spy.stub().increment().called_with(100).returns(-1)

    counter = spy.get_mock()
    assert counter.increment(100) == -1
    assert real.value == 0
    assert counter.increment(2) == 2


def test_spy_propagates_real_exceptions() -> None:
    """Exceptions from the real object reach the caller unchanged."""
    spy = Mockchain.spy_on(Counter())

    with pytest.raises(ValueError, match="real failure"):
        spy.get_mock().explode()


def test_spy_never_expectation_blocks_the_real_call() -> None:
    """A forbidden call on a strict spy fails before reaching the real object."""
    real = Counter()
    spy = Mockchain.spy_on(real, strict=True)
    spy.expect().increment().called_with_any().never()

    with pytest.raises(UnexpectedCallError, match="exceeds the expected cardinality"):
        spy.get_mock().increment()
    assert real.value == 0


def test_spy_reports_calls_beyond_expected_count() -> None:
    """Extra calls on a lenient spy still reach the real object and are reported."""
    real = Counter()
    spy = Mockchain.spy_on(real, strict=False)
    spy.expect().increment().called_with_any().times(1).returns(100)

    counter = spy.get_mock()
    assert counter.increment() == 100
    assert counter.increment() == 1

    with pytest.raises(VerificationError, match="1 unexpected extra call"):
        spy.verify()


def test_context_exit_releases_mock() -> None:
    """Leaving the block tears the mock down together with its nested mocks."""
    with Mockchain(UserRepository) as mock:
        repo = mock.get_mock()
        mock.stub().get_user().called_with_any().returns("Ann")
        assert repo.get_user(1) == "Ann"

    with pytest.raises(MockchainError, match="released"):
        repo.get_user(1)


def test_context_exit_keeps_mocks_of_shared_coordinator() -> None:
    """A shared coordinator decides when its mocks are released."""
    session = ResolutionCoordinator()
    with Mockchain(UserRepository, coordinator=session) as mock:
        mock.stub().get_user().called_with_any().returns("Ann")

    assert mock.get_mock().get_user(1) == "Ann"
    session.close()


def test_verification_reports_missing_expectation() -> None:
    """A never-called expectation is the only unsatisfied entry."""
    mock = Mockchain(Lookup)
    mock.expect().find().called_with("x").at_least(1).returns("found")

    report = mock.report()

    assert not report.passed
    assert len(report.unsatisfied) == 1
    entry = report.unsatisfied[0]
    assert entry.member == "find"
    assert entry.count == 0
    assert entry.expected == "at least 1"


@dataclass
class Settings:
    """Settings value object for the nested default example."""

    debug: bool = False


class SettingsStore(Protocol):
    """Store that hands out other collaborators."""

    def current(self) -> Settings: ...
    def history(self) -> list[Settings]: ...


def test_lenient_mock_returns_nested_mock_for_class_return() -> None:
    """Class-typed returns of unanswered calls are lenient mocks."""
    with ResolutionCoordinator() as session:
        store = Mockchain(SettingsStore, strict=False, coordinator=session).get_mock()

        nested = store.current()
        assert nested is store.current()
        assert nested.anything() is None
        assert store.history() == []


def test_coordinator_verifies_every_mock_once() -> None:
    """A shared coordinator aggregates verification across mocks."""
    session = ResolutionCoordinator()
    repo = Mockchain(UserRepository, name="repo", coordinator=session)
    calc = Mockchain(Calculator, name="calc", coordinator=session)
    repo.expect().get_user().called_with(1).returns("Ann")
    calc.expect().add().called_with(1, 1).returns(2)

    report = session.verify()

    assert report.render() == (
        "Unsatisfied expectations:\n"
        "missing 1 call(s) to 'get_user' on repo\n"
        "missing 1 call(s) to 'add' on calc"
    )


class Greeter(Protocol):
    """Greeter interface for table driven tests."""

    def greet(self, name: str) -> str: ...


@final
class GreetUsecase:
    """Use case for greeting users."""

    def __init__(self, greeter: Greeter) -> None:
        self._greeter = greeter

    def execute(self, name: str | None) -> str:
        if name is None:
            return "Hello, anon!"

        return self._greeter.greet(name) + "!"


def test_greet_table_driven() -> None:
    """Each case gets a fresh mock."""

    class Test(TypedDict):
        name: str
        mock: Callable[[Mockchain[Greeter]], None]
        input: str | None
        expected: str

    tests: list[Test] = [
        {
            "name": "greets alice",
            "mock": lambda m: m.expect()
            .greet()
            .called_with("Alice")
            .returns("Hello, Alice"),
            "input": "Alice",
            "expected": "Hello, Alice!",
        },
        {
            "name": "greets bob",
            "mock": lambda m: m.expect().greet().called_with("Bob").returns("Hi, Bob"),
            "input": "Bob",
            "expected": "Hi, Bob!",
        },
        {
            "name": "name is missing",
            "mock": lambda m: None,  # no calls expected
            "input": None,
            "expected": "Hello, anon!",
        },
    ]

    for tt in tests:
        with Mockchain(Greeter) as ctrl:
            tt["mock"](ctrl)
            result = GreetUsecase(ctrl.get_mock()).execute(tt["input"])
            assert result == tt["expected"], f"Failed: {tt['name']}"


class RemoteServer(Protocol):
    """Remote server interface for the async example."""

    async def fetch(self, resource: str) -> bytes: ...


@pytest.mark.asyncio
async def test_async_support() -> None:
    """Coroutine members use awaited_with."""
    async with Mockchain(RemoteServer) as mock:
        mock.expect().fetch().awaited_with(resource="resA").returns(b"ok")

        source = mock.get_mock()
        assert await source.fetch(resource="resA") == b"ok"
