"""Result-resolution engine for interaction-based test doubles."""

from __future__ import annotations

import logging
from unittest.mock import ANY

from ._cardinality import CardinalityTracker
from ._chain import GeneratorChain, Resolution
from ._config import MockSettings
from ._coordinator import ResolutionCoordinator
from ._core import Mockchain
from ._errors import (
    ConfigurationError,
    DefaultValueError,
    MockchainError,
    UnexpectedCallError,
    VerificationError,
)
from ._generators import (
    DefaultGenerator,
    InteractionGenerator,
    Response,
    ResponseKind,
    ResultGenerator,
    SpyGenerator,
    StubGenerator,
    resolve,
)
from ._invocation import Invocation
from ._matchers import AnyArguments, ArgumentMatcher, CallMatcher
from ._results import NO_VALUE, NotApplicable, Produced, Result
from ._verification import Problem, UnsatisfiedExpectation, VerificationReport

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ANY",
    "NO_VALUE",
    "AnyArguments",
    "ArgumentMatcher",
    "CallMatcher",
    "CardinalityTracker",
    "ConfigurationError",
    "DefaultGenerator",
    "DefaultValueError",
    "GeneratorChain",
    "InteractionGenerator",
    "Invocation",
    "MockSettings",
    "Mockchain",
    "MockchainError",
    "NotApplicable",
    "Problem",
    "Produced",
    "Resolution",
    "ResolutionCoordinator",
    "Response",
    "ResponseKind",
    "Result",
    "ResultGenerator",
    "SpyGenerator",
    "StubGenerator",
    "UnexpectedCallError",
    "UnsatisfiedExpectation",
    "VerificationError",
    "VerificationReport",
    "resolve",
]
