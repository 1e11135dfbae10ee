import os
import socket

from ubitix.logging import get_logger

logger = get_logger(__name__)


def _notify_address() -> str:
    address = os.environ.get("NOTIFY_SOCKET", "")
    # abstract namespace socket
    if address.startswith("@"):
        return "\0" + address[1:]
    return address


def systemd_notify(**values: str) -> None:
    """
    Report the gateway status to systemd, e.g. systemd_notify(READY="1").

    Outside of a 'Type=notify' service there is no $NOTIFY_SOCKET and the call does nothing.
    Failures are logged only, the gateway keeps running without the notification.
    """
    address = _notify_address()
    message = "\n".join(f"{key}={value}" for key, value in values.items())
    if not address:
        logger.debug(f"No $NOTIFY_SOCKET, not sending '{message}'")
        return

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
            sock.connect(address)
            sock.send(message.encode("utf8"))
    except OSError as e:
        logger.error(f"Failed to send '{message}' to systemd at '{address}': {e}")
