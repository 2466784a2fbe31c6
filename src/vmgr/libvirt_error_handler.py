import logging
import libvirt

# raised routinely while polling, when a VM disappears between list and lookup
EXPECTED_ERRORS = (
    libvirt.VIR_ERR_NO_DOMAIN,
)

def libvirt_error_handler(ctx, error):
    """
    Routes libvirt's own error reporting into the log file, keeping the
    terminal free for the dashboard.
    """
    code, domain, message, error_level = error[0], error[1], error[2], error[3]
    if code in EXPECTED_ERRORS:
        level = logging.DEBUG
    elif error_level == libvirt.VIR_ERR_ERROR:
        level = logging.ERROR
    elif error_level == libvirt.VIR_ERR_WARNING:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.log(
        level,
        "libvirt error: code=%d, domain=%d, message='%s', level=%d",
        code,
        domain,
        message,
        error_level,
    )

def register_error_handler():
    """
    Registers the libvirt error handler for the process.
    """
    libvirt.registerErrorHandler(f=libvirt_error_handler, ctx=None)
