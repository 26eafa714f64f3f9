from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._verification import VerificationReport


class MockchainError(Exception):
    """Framework-internal failure, never an intended test outcome."""


class ConfigurationError(MockchainError):
    pass


class DefaultValueError(MockchainError):
    pass


class UnexpectedCallError(AssertionError):
    pass


class VerificationError(AssertionError):
    def __init__(self, report: VerificationReport) -> None:
        self.report = report
        super().__init__(report.render())
