# tests/conftest.py
"""
Shared helpers for the xod test-suite.

``Runner`` wraps a fresh ``Environment`` and an ``Evaluator`` whose
format built-ins print into a ``StringIO`` so tests can inspect both the
outcomes and the printed text.
"""

import io
from typing import List, Optional

import pytest

from xod.config import XodConfig
from xod.errors import XodEvalError
from xod.evaluator import Evaluator
from xod.parser import parse
from xod.runtime import Completed, Environment, Failure, Outcome


class Runner:
    """Parse-and-run helper bound to one environment."""

    def __init__(self, config: Optional[XodConfig] = None) -> None:
        self.config = config or XodConfig()
        self.env = Environment()
        self.out = io.StringIO()
        self.evaluator = Evaluator(self.env, self.config, self.out)

    def run(self, source: str) -> List[Outcome]:
        return list(self.evaluator.run(parse(source, self.config)))

    def value(self, source: str):
        """Result of the last line, which must have completed."""
        outcomes = self.run(source)
        assert outcomes, f"no lines in {source!r}"
        last = outcomes[-1]
        assert isinstance(last, Completed), f"{source!r} ended with {last!r}"
        return last.result

    def failure(self, source: str) -> XodEvalError:
        outcomes = self.run(source)
        last = outcomes[-1]
        assert isinstance(last, Failure), f"{source!r} ended with {last!r}"
        return last.error

    def var(self, name: str):
        return self.env.get(name)

    @property
    def printed(self) -> str:
        return self.out.getvalue()


def make_reader(lines):
    """An ``input``-like callable that replays *lines*, then raises EOF."""
    remaining = iter(lines)

    def reader(prompt: str) -> str:
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return reader


@pytest.fixture
def runner():
    return Runner()


@pytest.fixture
def narrow_runner():
    """Runner with 8-bit scalars."""
    return Runner(XodConfig(bit_width=8))
