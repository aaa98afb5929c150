"""Pytest configuration and shared fixtures.

Run pytest from this project's root; pythonpath in pyproject.toml puts
src/ on the import path.
"""

from typing import Callable
from unittest.mock import MagicMock

import pytest

from conversion_fixer.domain.entities import Document
from conversion_fixer.infrastructure.gateways.cst_syntax_tree import CstSyntaxTree


@pytest.fixture
def make_tree() -> Callable[..., CstSyntaxTree]:
    """Parse a source snippet into a CstSyntaxTree."""

    def _make(source: str, path: str = "module.py") -> CstSyntaxTree:
        return CstSyntaxTree(Document(path=path, source=source))

    return _make


@pytest.fixture
def use_case_deps() -> dict[str, object]:
    """Required dependency mocks for ApplyFixesUseCase / CheckConversionsUseCase."""
    return {
        "diagnostic_source": MagicMock(),
        "filesystem": MagicMock(),
        "register_use_case": MagicMock(),
        "telemetry": MagicMock(),
    }
