"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Dict, Generator, List, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from apibmon import MonitorServer, MonitorConfig
from apibmon.monitor.cpu import CPUUsageSample
from apibmon.urls import ResolutionError


class FakeMonitor:
    """
    Deterministic CPU/memory source.

    Every sample advances busy by 1s and total by 4s, so the usage
    between any two consecutive samples is exactly 25%.
    """

    def __init__(self, memory: float = 42.5):
        self.memory = memory
        self.samples_taken = 0

    def sample(self) -> CPUUsageSample:
        self.samples_taken += 1
        return CPUUsageSample(
            busy=float(self.samples_taken),
            total=4.0 * self.samples_taken,
        )

    def memory_percent(self) -> float:
        return self.memory


class FakeResolver:
    """Resolver double backed by a host → IP list table."""

    def __init__(self, table: Dict[str, List[str]]):
        self.table = table
        self.calls: List[Tuple[str, int]] = []

    def __call__(self, host: str, port: int):
        self.calls.append((host, port))
        if host not in self.table:
            raise ResolutionError(host, "Name or service not known")
        return tuple((ip, port) for ip in self.table[host])


@pytest.fixture
def fake_monitor() -> FakeMonitor:
    return FakeMonitor()


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver({
        "a.example.com": ["10.0.0.1"],
        "b.example.com": ["10.0.0.2", "10.0.0.3"],
        "c.example.com": ["10.0.0.4", "10.0.0.5", "10.0.0.6"],
        "d.example.com": ["10.0.0.7"],
        "e.example.com": ["10.0.0.8"],
    })


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs the accept loop in a background thread."""

    __test__ = False

    def __init__(self, server: MonitorServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Bind, then accept on a daemon thread (there is no stop)."""
        self.server.bind()
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

    def connect(self) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
        return sock


@pytest.fixture
def test_server(fake_monitor: FakeMonitor) -> Generator[TestServer, None, None]:
    """A monitor server on an OS-assigned port with a fake monitor."""
    server = MonitorServer(
        MonitorConfig(host="127.0.0.1", port=0, log_level="WARNING"),
        monitor=fake_monitor,
    )
    test_srv = TestServer(server)
    test_srv.start()
    yield test_srv


@pytest.fixture
def live_server() -> Generator[TestServer, None, None]:
    """A monitor server reading real counters through psutil."""
    server = MonitorServer(MonitorConfig(host="127.0.0.1", port=0, log_level="WARNING"))
    test_srv = TestServer(server)
    test_srv.start()
    yield test_srv
