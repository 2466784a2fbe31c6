"""
Manages the libvirt connection to the virtualization host.
"""
import libvirt
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError

from vmgr.errors import ConnectionLost

class ConnectionManager:
    """Opens, checks and closes the single libvirt connection the dashboard polls."""

    def __init__(self, uri: str, timeout: float = 10):
        """Initializes the ConnectionManager."""
        self.uri = uri
        self.timeout = timeout
        self.connection: libvirt.virConnect | None = None
        self.connection_error: str | None = None

    def connect(self) -> libvirt.virConnect | None:
        """
        Connects to the URI. If already connected, returns the existing connection.
        Returns None and records the error when the host cannot be reached.
        """
        if self.connection is not None:
            return self.connection

        try:
            logging.info(f"Opening new libvirt connection to {self.uri}")

            def open_connection():
                return libvirt.open(self.uri)

            executor = ThreadPoolExecutor(max_workers=1)
            future = executor.submit(open_connection)
            try:
                conn = future.result(timeout=self.timeout)
            except TimeoutError:
                msg = f"Connection timed out after {self.timeout} seconds."
                if 'ssh' in self.uri.lower():
                    msg += " If using SSH, use an SSH agent or a key without a passphrase,"
                    msg += " interactive prompts are not supported."
                raise libvirt.libvirtError(msg)
            finally:
                executor.shutdown(wait=False)

            if conn is None:
                raise libvirt.libvirtError(f"libvirt.open('{self.uri}') returned None")

            self.connection = conn
            self.connection_error = None
            return conn
        except libvirt.libvirtError as e:
            logging.error(f"Failed to connect to '{self.uri}': {e}")
            self.connection_error = str(e)
            self.connection = None
            return None

    def disconnect(self) -> bool:
        """Closes the connection if one is open."""
        if self.connection is None:
            return False
        try:
            self.connection.close()
            logging.info(f"Closed connection to {self.uri}")
        except libvirt.libvirtError as e:
            logging.error(f"Error closing connection to {self.uri}: {e}")
        finally:
            self.connection = None
        return True

    def is_alive(self) -> bool:
        """Checks if the connection is alive."""
        if self.connection is None:
            return False
        try:
            self.connection.getLibVersion()
            return True
        except libvirt.libvirtError:
            return False

    def require(self) -> libvirt.virConnect:
        """
        Returns the live connection.

        Raises:
            ConnectionLost: if the connection is closed or no longer answers
        """
        if not self.is_alive():
            raise ConnectionLost(self.uri, self.connection_error or "host not answering")
        return self.connection
