"""
Shared constants for the application.
"""

class AppInfo:
    """Define app data"""
    name = "vmgr"
    namecase = "VMgr"
    version = "0.3.0"

class VmAction:
    """Defines constants for VM action types."""
    START = "start"
    STOP = "stop"
    TOGGLE = "toggle"
    SNAPSHOT = "snapshot"

class StopMode:
    """How a stop request is delivered to the hypervisor."""
    DESTROY = "destroy"
    SHUTDOWN = "shutdown"

class StatusLabel:
    """Constants for the on/off status shown per VM"""
    ON = "on"
    OFF = "off"

class CounterDefaults:
    """Values taken by counters the hypervisor did not report"""
    UNKNOWN = "unknown"
    ZERO = 0

class TableColumns:
    """Column headers of the VM table"""
    ID = "id"
    NAME = "name"
    CPU = "cpu usage"
    MEMORY = "memory usage"
    STATUS = "status"

# height of one VM row in the table, in terminal lines
ITEM_HEIGHT = 4

NANOSECONDS_PER_SECOND = 1_000_000_000

INFO_TEXT = "(q) quit | (↑) move up | (↓) move down | (x) start / stop vm | (s) snapshot vm"

SNAPSHOT_DESCRIPTION = "vmgr snapshot"
SNAPSHOT_TIME_FORMAT = "%Y%m%d-%H%M%S"

class ErrorMessages:
    """Constants for error messages"""
    NO_SELECTION = "No VM selected."
    CONNECTION_LOST = "Connection to {uri} lost, exiting."
    CONNECT_FAILED = "Failed to connect to {uri}: {error}"
    FETCH_FAILED = "Could not refresh VM statistics: {error}"
    COMMAND_FAILED = "Error on VM '{name}' during '{action}': {error}"
    COMMAND_IN_PROGRESS = "'{action}' on VM '{name}' is already in progress."
    UNEXPECTED_FETCH_ERROR = "Unexpected error while fetching VM statistics: {error}"
