import errno
import logging

import usb.core
import usb.util

from gled_errors import DeviceNotFoundError, TransportError
from gled_payloads import ENABLE_PACKET, PACKET_SIZE

_LOGGER = logging.getLogger(__name__)

# -debug level -> level of pyusb's "usb" logger
USB_DEBUG_LEVELS = {
    0: logging.CRITICAL + 1,
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.DEBUG,
}

UDEV_HINT = ("Try adding a udev rule for your mouse "
             "(SUBSYSTEM==\"usb\", ATTRS{idVendor}==\"046d\", ATTRS{idProduct}==\"c092\", "
             "MODE=\"0660\", TAG+=\"uaccess\"). Running as root will probably work too "
             "but is not recommended")


def set_usb_debug(level):
    # pyusb records propagate to the root handler set up by gled.main
    logging.getLogger("usb").setLevel(USB_DEBUG_LEVELS[level])


def _transport_error(message, exception):
    text = f"{message}: {exception}"
    if exception.errno == errno.EACCES:
        text = f"{text}. {UDEV_HINT}"
    return TransportError(text, exception.errno)


class Driver(object):
    """pyusb session with a Logitech G102/G203 mouse.

    Use as a context manager so the interface is always handed back to
    the kernel:

        with Driver(debug=0) as driver:
            driver.apply(payload)
    """

    def __init__(self, debug=0):
        self.vendorid = 0x046d  # Logitech, Inc.
        self.productid = 0xc092  # G102/G203 LIGHTSYNC
        self.bmRequestType = 0x21
        self.bRequest = 0x09
        self.wValue = 0x0211
        self.wIndex = 0x0001

        self.debug = debug
        self.mouse = None
        self.conquered = False

        set_usb_debug(debug)

    def __enter__(self):
        self.find_device()
        try:
            self.conquer()
        except BaseException:
            self.liberate()
            raise
        return self

    def __exit__(self, *args):
        self.liberate()

    def find_device(self):
        _LOGGER.debug("Looking for device %04x:%04x", self.vendorid, self.productid)
        self.mouse = usb.core.find(idVendor=self.vendorid, idProduct=self.productid)
        if self.mouse is None:
            raise DeviceNotFoundError(
                f"Device {self.vendorid:04x}:{self.productid:04x} not found. Try replugging")
        return self.mouse

    def device_busy(self):
        try:
            return self.mouse.is_kernel_driver_active(self.wIndex)
        except NotImplementedError:
            # backends without kernel driver support (e.g. Windows)
            return False
        except usb.core.USBError as exception:
            raise _transport_error("Error checking kernel driver", exception) from exception

    def conquer(self):
        if self.conquered or not self.device_busy():
            return
        _LOGGER.debug("Detaching kernel driver from interface %d", self.wIndex)
        try:
            self.mouse.detach_kernel_driver(self.wIndex)
            self.conquered = True
            usb.util.claim_interface(self.mouse, self.wIndex)
        except usb.core.USBError as exception:
            raise _transport_error("Error claiming interface", exception) from exception

    def liberate(self):
        if self.mouse is None:
            return
        if self.conquered:
            _LOGGER.debug("Reattaching kernel driver to interface %d", self.wIndex)
            try:
                usb.util.release_interface(self.mouse, self.wIndex)
                self.mouse.attach_kernel_driver(self.wIndex)
            except usb.core.USBError as exception:
                _LOGGER.warning("Failed to release device back to kernel: %s", exception)
            self.conquered = False
        usb.util.dispose_resources(self.mouse)
        self.mouse = None

    def send_payload(self, payload):
        if len(payload) != PACKET_SIZE:
            raise ValueError(f"payload length must be {PACKET_SIZE} bytes, got {len(payload)}")
        return self.mouse.ctrl_transfer(
            self.bmRequestType, self.bRequest, self.wValue, self.wIndex, payload)

    def enable_software_control(self):
        """Hand lighting over to software; failures are only logged."""
        _LOGGER.info("Sending software control enable packet: %s", ENABLE_PACKET.hex())
        try:
            self.send_payload(ENABLE_PACKET)
        except usb.core.USBError as exception:
            # the mouse may already be under software control
            _LOGGER.warning("Error sending software control enable packet: %s", exception)
            return False
        return True

    def apply(self, payload):
        self.enable_software_control()

        _LOGGER.info("Sending command payload: %s", bytes(payload).hex())
        try:
            written = self.send_payload(payload)
        except usb.core.USBError as exception:
            raise _transport_error("Error sending control data", exception) from exception
        _LOGGER.info("%d bytes transferred for command payload", written)
        return written
