"""
Global test configuration for fieldforge tests.

Every test starts with fresh sequence counters and a configuration loaded
from a clean environment, so build order in one test never leaks into
another.
"""

from typing import Iterator

import pytest

from fieldforge import reset_all_sequence
from fieldforge.config import reset_config
from fieldforge.observability import clear_build_trace


@pytest.fixture(autouse=True)
def isolated_factory_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """
    Reset process-wide fieldforge state around each test.

    This fixture:
    1. Removes FIELDFORGE_* variables so configuration uses its defaults
    2. Drops the cached global configuration
    3. Resets every factory's sequence counter to 0
    4. Clears any leftover build trace
    """
    for name in (
        "FIELDFORGE_LOG_LEVEL",
        "FIELDFORGE_STRUCTURED_LOGGING",
        "FIELDFORGE_COPY_DEFAULT_LITERALS",
        "FIELDFORGE_TRACE_RESOLUTION",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    reset_all_sequence()
    clear_build_trace()
    yield
    reset_config()
    reset_all_sequence()


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: exercises several factories together"
    )
