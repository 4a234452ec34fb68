"""Pytest configuration for psdparse tests."""

from typing import Iterator

import pytest

from psdparse.context import ParseContext


@pytest.fixture
def ctx() -> Iterator[ParseContext]:
    """Fresh per-file parse context."""
    yield ParseContext(name="test.psd")
