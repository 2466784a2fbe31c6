"""
Lifecycle actions on a VM: start, stop and snapshot
"""
from datetime import datetime
import xml.etree.ElementTree as ET

import libvirt

from vmgr.constants import SNAPSHOT_DESCRIPTION, StopMode
from vmgr.utils import log_function_call, snapshot_name


def _lookup(conn: libvirt.virConnect, vm_name: str) -> libvirt.virDomain:
    if not conn:
        raise ValueError("Invalid connection object.")
    return conn.lookupByName(vm_name)


@log_function_call
def start_vm(conn: libvirt.virConnect, vm_name: str):
    """
    Boots a defined VM.
    libvirt rejects the request if the VM is already running.
    """
    domain = _lookup(conn, vm_name)
    domain.create()


@log_function_call
def stop_vm(conn: libvirt.virConnect, vm_name: str, mode: str = StopMode.DESTROY):
    """
    Stops a running VM, either by pulling the plug (destroy) or by asking
    the guest to shut down. libvirt rejects the request if the VM is not running.
    """
    domain = _lookup(conn, vm_name)
    if mode == StopMode.SHUTDOWN:
        domain.shutdown()
    else:
        domain.destroy()


def build_snapshot_xml(name: str) -> str:
    """Returns the domainsnapshot XML for a snapshot called ``name``."""
    root = ET.Element("domainsnapshot")
    ET.SubElement(root, "name").text = name
    ET.SubElement(root, "description").text = SNAPSHOT_DESCRIPTION
    return ET.tostring(root, encoding="unicode")


@log_function_call
def snapshot_vm(conn: libvirt.virConnect, vm_name: str, issued_at: datetime) -> str:
    """
    Takes a disk-only snapshot of the VM, named after the VM and the issuance time.
    Works whatever the VM's run state. Returns the snapshot name.
    """
    domain = _lookup(conn, vm_name)
    name = snapshot_name(vm_name, issued_at)
    domain.snapshotCreateXML(
        build_snapshot_xml(name), libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_DISK_ONLY
    )
    return name
