"""
Utils functions
"""
import logging
from datetime import datetime, timezone
from functools import wraps
from urllib.parse import urlparse

from vmgr.constants import SNAPSHOT_TIME_FORMAT


def log_function_call(func) -> callable:
    """
    A decorator that logs the function call and its arguments.

    Args:
        func: The function to be decorated

    Returns:
        function: The wrapped function with logging

    Raises:
        TypeError: If func is not callable
    """
    if not callable(func):
        raise TypeError("func must be callable")

    @wraps(func)
    def wrapper(*args, **kwargs):
        logging.info(f"Calling {func.__name__} with args: {args}, kwargs: {kwargs}")
        try:
            result = func(*args, **kwargs)
            logging.info(f"{func.__name__} returned: {result}")
            return result
        except Exception as e:
            logging.error(f"Exception in {func.__name__}: {e}")
            raise
    return wrapper


def utc_now() -> datetime:
    """Current time in UTC, used to stamp snapshot names."""
    return datetime.now(timezone.utc)


def snapshot_name(vm_name: str, issued_at: datetime) -> str:
    """
    Builds the name of a snapshot from its VM and issuance time.

    Args:
        vm_name (str): Name of the VM
        issued_at (datetime): When the snapshot was requested

    Returns:
        str: "<vm name>-<YYYYmmdd-HHMMSS>"

    Raises:
        TypeError: If vm_name is not a string
    """
    if not isinstance(vm_name, str):
        raise TypeError("vm_name must be a string")
    return f"{vm_name}-{issued_at.strftime(SNAPSHOT_TIME_FORMAT)}"


def extract_server_name_from_uri(uri: str) -> str:
    """
    Host part of a libvirt URI, for the subtitle.

    A URI without a host (``qemu:///system``, ``qemu:///session``) is the
    local hypervisor.

    Raises:
        TypeError: If uri is not a string
    """
    if not isinstance(uri, str):
        raise TypeError("uri must be a string")
    if not uri:
        return "Unknown"
    if "://" not in uri:
        return uri
    return urlparse(uri).hostname or "Local"
