"""
Errors raised by the dashboard core and its libvirt collaborators
"""


class VmgrError(Exception):
    """Base class for every error the dashboard reports."""


class FetchFailure(VmgrError):
    """The raw statistics fetch failed; the whole tick is skipped."""


class MalformedCounter(VmgrError):
    """A counter was present but could not be parsed."""

    def __init__(self, key: str, value) -> None:
        super().__init__(f"Malformed counter '{key}': {value!r}")
        self.key = key
        self.value = value


class NoSelection(VmgrError):
    """A command was issued while no VM is selected."""


class CommandFailure(VmgrError):
    """The hypervisor rejected a start, stop or snapshot request."""

    def __init__(self, action: str, vm_name: str, reason: str) -> None:
        super().__init__(f"'{action}' failed for VM '{vm_name}': {reason}")
        self.action = action
        self.vm_name = vm_name
        self.reason = reason


class ConnectionLost(VmgrError):
    """The session to the virtualization host is gone."""

    def __init__(self, uri: str, reason: str = "") -> None:
        message = f"Connection to {uri} lost"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.uri = uri
