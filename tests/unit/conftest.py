import io
from collections.abc import Callable
from pathlib import Path

import orjson
import pytest
from structlog.typing import FilteringBoundLogger

from procwarden.supervisor import SupervisedProcess
from procwarden.supervisor._fake import FakeClock
from procwarden.utils import create_logger


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def process() -> SupervisedProcess:
    """The supervised target used across supervisor tests."""
    return SupervisedProcess(
        name="vpnagentd",
        executable=Path("/opt/cisco/secureclient/bin/vpnagentd"),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> FilteringBoundLogger:
    """JSON logger writing to an in-memory stream at debug level."""
    return create_logger(level="debug", log_format="json", stream=log_stream)


@pytest.fixture
def log_events(log_stream: io.StringIO) -> Callable[[], list[dict[str, object]]]:
    """Return a function listing the events logged so far, in order."""

    def _events() -> list[dict[str, object]]:
        return [
            orjson.loads(line)
            for line in log_stream.getvalue().splitlines()
            if line.strip()
        ]

    return _events
