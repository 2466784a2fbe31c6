"""Unit tests for vmgr.vm_actions."""
from datetime import datetime, timezone
import xml.etree.ElementTree as ET

import pytest

from vmgr.constants import StopMode
from vmgr.vm_actions import build_snapshot_xml, snapshot_vm, start_vm, stop_vm


def test_start_vm(mock_conn, mock_domain):
    start_vm(mock_conn, "vm1")
    mock_conn.lookupByName.assert_called_once_with("vm1")
    mock_domain.create.assert_called_once_with()


@pytest.mark.parametrize("mode, called, not_called", [
    (StopMode.DESTROY, "destroy", "shutdown"),
    (StopMode.SHUTDOWN, "shutdown", "destroy"),
])
def test_stop_vm_modes(mock_conn, mock_domain, mode, called, not_called):
    stop_vm(mock_conn, "vm1", mode=mode)
    getattr(mock_domain, called).assert_called_once_with()
    getattr(mock_domain, not_called).assert_not_called()


def test_missing_connection_is_rejected():
    with pytest.raises(ValueError):
        start_vm(None, "vm1")


def test_snapshot_xml_escapes_name():
    root = ET.fromstring(build_snapshot_xml("a<b>-20250101-000000"))
    assert root.tag == "domainsnapshot"
    assert root.findtext("name") == "a<b>-20250101-000000"
    assert root.findtext("description") == "vmgr snapshot"


def test_snapshot_vm_returns_name(mock_conn, mock_domain):
    issued_at = datetime(2025, 6, 7, 8, 9, 10, tzinfo=timezone.utc)
    assert snapshot_vm(mock_conn, "vm1", issued_at) == "vm1-20250607-080910"
    mock_domain.snapshotCreateXML.assert_called_once()
