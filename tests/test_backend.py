import logging

import pytest
import usb.core
import usb.util

from gled_backend import Driver
from gled_errors import DeviceNotFoundError, TransportError
from gled_payloads import ENABLE_PACKET, build_intro


class FakeMouse:
    def __init__(self, kernel_driver=True, fail_on=()):
        self.kernel_driver = kernel_driver
        self.fail_on = list(fail_on)
        self.transfers = []
        self.attached = []

    def is_kernel_driver_active(self, interface):
        return self.kernel_driver

    def detach_kernel_driver(self, interface):
        self.kernel_driver = False

    def attach_kernel_driver(self, interface):
        self.kernel_driver = True
        self.attached.append(interface)

    def ctrl_transfer(self, bmRequestType, bRequest, wValue, wIndex, data):
        self.transfers.append((bmRequestType, bRequest, wValue, wIndex, bytes(data)))
        if bytes(data) in self.fail_on:
            raise usb.core.USBError("Pipe error", errno=32)
        return len(data)


@pytest.fixture
def usb_stub(monkeypatch):
    calls = []

    def stub(mouse):
        def find(**kwargs):
            calls.append(kwargs)
            return mouse
        monkeypatch.setattr(usb.core, "find", find)
        monkeypatch.setattr(usb.util, "claim_interface", lambda dev, intf: None)
        monkeypatch.setattr(usb.util, "release_interface", lambda dev, intf: None)
        monkeypatch.setattr(usb.util, "dispose_resources", lambda dev: None)
        return calls

    return stub


def test_device_not_found(usb_stub):
    calls = usb_stub(None)
    with pytest.raises(DeviceNotFoundError, match="046d:c092"):
        with Driver():
            pass
    assert calls == [{"idVendor": 0x046d, "idProduct": 0xc092}]


def test_apply_sends_enable_packet_first(usb_stub):
    mouse = FakeMouse()
    usb_stub(mouse)
    payload = build_intro(True)

    with Driver() as driver:
        assert driver.apply(payload) == 20

    assert mouse.transfers == [
        (0x21, 0x09, 0x0211, 0x01, ENABLE_PACKET),
        (0x21, 0x09, 0x0211, 0x01, payload),
    ]


def test_kernel_driver_is_reattached(usb_stub):
    mouse = FakeMouse(kernel_driver=True)
    usb_stub(mouse)

    with Driver() as driver:
        assert driver.conquered
        assert not mouse.kernel_driver

    assert mouse.kernel_driver
    assert mouse.attached == [1]
    assert driver.mouse is None


def test_kernel_driver_left_alone_when_inactive(usb_stub):
    mouse = FakeMouse(kernel_driver=False)
    usb_stub(mouse)

    with Driver() as driver:
        assert not driver.conquered

    assert mouse.attached == []


def test_enable_failure_is_only_a_warning(usb_stub, caplog):
    mouse = FakeMouse(fail_on=[ENABLE_PACKET])
    usb_stub(mouse)
    payload = build_intro(False)

    with caplog.at_level(logging.WARNING, logger="gled_backend"):
        with Driver() as driver:
            assert driver.apply(payload) == 20

    assert [t[4] for t in mouse.transfers] == [ENABLE_PACKET, payload]
    assert "software control enable packet" in caplog.text


def test_payload_failure_raises_and_releases(usb_stub):
    payload = build_intro(True)
    mouse = FakeMouse(fail_on=[payload])
    usb_stub(mouse)

    with pytest.raises(TransportError, match="Error sending control data") as excinfo:
        with Driver() as driver:
            driver.apply(payload)

    assert excinfo.value.errno == 32
    assert isinstance(excinfo.value.__cause__, usb.core.USBError)
    assert mouse.kernel_driver
    assert driver.mouse is None


def test_permission_error_mentions_udev(usb_stub):
    class LockedMouse(FakeMouse):
        def is_kernel_driver_active(self, interface):
            raise usb.core.USBError("Access denied", errno=13)

    usb_stub(LockedMouse())

    with pytest.raises(TransportError, match="udev rule"):
        with Driver():
            pass


def test_send_payload_checks_length(usb_stub):
    usb_stub(FakeMouse())

    with Driver() as driver:
        with pytest.raises(ValueError, match="20 bytes"):
            driver.send_payload(bytes(19))


@pytest.fixture
def usb_logger():
    logger = logging.getLogger("usb")
    level = logger.level
    yield logger
    logger.setLevel(level)


def test_debug_level_sets_usb_logger(usb_logger):
    Driver(debug=3)
    assert usb_logger.level == logging.DEBUG

    Driver(debug=1)
    assert usb_logger.level == logging.ERROR

    Driver(debug=0)
    assert usb_logger.level > logging.CRITICAL


def test_debug_levels_grow_more_verbose(usb_logger):
    levels = []
    for debug in range(4):
        Driver(debug=debug)
        levels.append(usb_logger.getEffectiveLevel())
    assert levels == sorted(levels, reverse=True)
    assert levels[0] > logging.CRITICAL
