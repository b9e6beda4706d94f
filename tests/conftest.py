import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    # The CLI configures structlog globally; keep tests independent of order.
    yield
    structlog.reset_defaults()
