"""
Turns a key-triggered action on the selected row into a lifecycle call
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

import libvirt

from vmgr.connection_manager import ConnectionManager
from vmgr.constants import ErrorMessages, StatusLabel, StopMode, VmAction
from vmgr.errors import CommandFailure, NoSelection
from vmgr.rates import DerivedRow
from vmgr.selection import SelectionState
from vmgr.utils import utc_now
from vmgr.vm_actions import snapshot_vm, start_vm, stop_vm


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a lifecycle command that libvirt accepted."""
    action: str
    vm_name: str
    message: str
    snapshot_name: str | None = None


class CommandDispatcher:
    """
    Resolves the selected row to a VM name and calls the lifecycle primitives.

    Rows are never modified here: a started or stopped VM shows its new
    status on the next tick. Starting a running VM or stopping a stopped one
    is passed to libvirt, which refuses it; that refusal comes back as a
    CommandFailure rather than being pre-empted.
    """

    def __init__(self, connection_manager: ConnectionManager,
                 stop_mode: str = StopMode.DESTROY,
                 clock: Callable[[], datetime] = utc_now):
        self.connection_manager = connection_manager
        self.stop_mode = stop_mode
        self.clock = clock

    def resolve(self, action: str, selection: SelectionState,
                rows: Sequence[DerivedRow]) -> tuple[str, str]:
        """
        Returns (concrete action, vm name) for the selected row.
        The toggle action becomes start for a VM shown "off" and stop otherwise.

        Raises:
            NoSelection: if nothing is selected
            ValueError: for an unknown action
        """
        index = selection.selected_index
        if index is None or not 0 <= index < len(rows):
            raise NoSelection(ErrorMessages.NO_SELECTION)
        row = rows[index]

        if action == VmAction.TOGGLE:
            action = VmAction.START if row.status_label == StatusLabel.OFF else VmAction.STOP
        if action not in (VmAction.START, VmAction.STOP, VmAction.SNAPSHOT):
            raise ValueError(f"Unknown action '{action}'")
        return action, row.name

    def execute(self, action: str, vm_name: str) -> CommandResult:
        """
        Runs one lifecycle command against the host.

        Raises:
            CommandFailure: if libvirt rejects the command
            ConnectionLost: if the host connection is gone
        """
        conn = self.connection_manager.require()
        try:
            if action == VmAction.START:
                start_vm(conn, vm_name)
                return CommandResult(action, vm_name, f"VM '{vm_name}' started successfully.")
            if action == VmAction.STOP:
                stop_vm(conn, vm_name, mode=self.stop_mode)
                if self.stop_mode == StopMode.SHUTDOWN:
                    return CommandResult(action, vm_name, f"Sent shutdown signal to VM '{vm_name}'.")
                return CommandResult(action, vm_name, f"VM '{vm_name}' forcefully stopped.")
            if action == VmAction.SNAPSHOT:
                name = snapshot_vm(conn, vm_name, self.clock())
                return CommandResult(action, vm_name, f"Snapshot '{name}' created successfully.",
                                     snapshot_name=name)
        except (libvirt.libvirtError, ValueError) as e:
            logging.error(f"Error on VM '{vm_name}' during '{action}': {e}")
            raise CommandFailure(action, vm_name, str(e)) from e
        raise ValueError(f"Unknown action '{action}'")

    def dispatch(self, action: str, selection: SelectionState,
                 rows: Sequence[DerivedRow]) -> CommandResult:
        """Resolves the selection and runs the command in one call."""
        concrete_action, vm_name = self.resolve(action, selection, rows)
        return self.execute(concrete_action, vm_name)
