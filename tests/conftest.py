"""Pytest configuration and fixtures for Ladle tests."""

import pytest

from ladle import Environment
from ladle.environment import terminal


@pytest.fixture(autouse=True)
def _plain_terminal(monkeypatch):
    """Keep error messages free of ANSI codes regardless of the runner's TTY."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a basic Ladle Environment (lax parsing)."""
    return Environment()


@pytest.fixture
def env_strict():
    """Create a Ladle Environment with strict markup parsing."""
    return Environment(error_mode="strict")


@pytest.fixture
def env_warn():
    """Create a Ladle Environment with warn-mode markup parsing."""
    return Environment(error_mode="warn")


def render(source: str, data: dict | None = None, **options) -> str:
    """Parse ``source`` with a fresh Environment and render it once.

    Args:
        source: Template source.
        data: Render variables.
        options: Environment options.
    """
    return Environment(**options).from_string(source).render(data or {})


def assert_template_result(expected: str, source: str, data: dict | None = None, **options):
    """Assert that ``source`` renders to ``expected`` in every error mode.

    Args:
        expected: Expected output.
        source: Template source.
        data: Render variables.
        options: Extra Environment options.
    """
    for mode in ("lax", "strict"):
        actual = render(source, data, error_mode=mode, **options)
        assert actual == expected, (
            f"Template output mismatch ({mode}):\n"
            f"  Source: {source!r}\n"
            f"  Actual: {actual!r}\n"
            f"  Expected: {expected!r}"
        )
