"""pytest fixtures shared by the vmgr tests.

libvirt connections and domains are MagicMock objects, so no host is needed.
"""
from unittest.mock import MagicMock

import libvirt
import pytest

from vmgr.metrics import MetricsSnapshot, VmIdentity
from vmgr.rates import derive


def make_snapshot(name="vm1", captured_at=0.0, cpu_time_ns=0, running=True, vm_id=1, **fields):
    """Build a MetricsSnapshot with defaults for everything not given."""
    return MetricsSnapshot(
        identity=VmIdentity(id=vm_id, name=name),
        captured_at=captured_at,
        running=running,
        cpu_time_ns=cpu_time_ns,
        **fields,
    )


def make_rows(*names, running=True):
    """Build first-observation rows for the given VM names."""
    return [derive(None, make_snapshot(name=name, vm_id=i, running=running))
            for i, name in enumerate(names)]


@pytest.fixture
def mock_domain():
    domain = MagicMock()
    domain.name.return_value = "vm1"
    domain.ID.return_value = 1
    return domain


@pytest.fixture
def mock_conn(mock_domain):
    conn = MagicMock()
    conn.lookupByName.return_value = mock_domain
    conn.getLibVersion.return_value = 10000000
    return conn


@pytest.fixture
def connection_manager(mock_conn):
    """A ConnectionManager already holding a live mocked connection."""
    from vmgr.connection_manager import ConnectionManager
    manager = ConnectionManager("qemu:///system", timeout=1)
    manager.connection = mock_conn
    return manager


@pytest.fixture
def libvirt_error():
    def _make(message="boom"):
        return libvirt.libvirtError(message)
    return _make
