from __future__ import annotations

import pytest
from jinja2 import Environment as Jinja2Environment

from ladle import Environment as LadleEnvironment


@pytest.fixture(scope="session")
def ladle_env() -> LadleEnvironment:
    return LadleEnvironment()


@pytest.fixture(scope="session")
def jinja2_env() -> Jinja2Environment:
    return Jinja2Environment(autoescape=False, keep_trailing_newline=True)


@pytest.fixture(scope="session")
def small_context() -> dict[str, object]:
    return {
        "title": "Benchmark",
        "user": {"name": "Ada", "admin": True},
        "items": [f"item {i}" for i in range(5)],
    }


@pytest.fixture(scope="session")
def large_context() -> dict[str, object]:
    return {
        "products": [
            {"title": f"Product {i}", "price": i * 3, "tags": ["a", "b", "c"]}
            for i in range(1000)
        ],
    }
