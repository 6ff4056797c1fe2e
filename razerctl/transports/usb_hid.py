"""HID feature-report transport over USB control transfers (pyusb)."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import usb.core
import usb.util

from razerctl.core.errors import (
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)

# linux/hid.h
HID_REQ_GET_REPORT = 0x01
HID_REQ_SET_REPORT = 0x09
# Feature report, report id 0.
REPORT_VALUE = 0x0300
REPORT_INDEX = 0x0000

REQUEST_TYPE_OUT = usb.util.build_request_type(
    usb.util.CTRL_OUT, usb.util.CTRL_TYPE_CLASS, usb.util.CTRL_RECIPIENT_INTERFACE
)
REQUEST_TYPE_IN = usb.util.build_request_type(
    usb.util.CTRL_IN, usb.util.CTRL_TYPE_CLASS, usb.util.CTRL_RECIPIENT_INTERFACE
)

LOGGER = logging.getLogger(__name__)


class USBHIDTransport:
    """Exclusive handle on one interface of one USB device.

    Control transfers are blocking in pyusb, so they run in a worker thread.
    A thread lock keeps a transfer abandoned by a cancelled coroutine from
    overlapping the next one.
    """

    def __init__(
        self,
        device: Any,
        *,
        interface_number: int = 0,
        timeout_ms: int = 1000,
    ) -> None:
        self._device = device
        self._interface_number = interface_number
        self._timeout_ms = timeout_ms
        self._detached_kernel_driver = False
        self._is_open = False
        self._transfer_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        try:
            if self._device.is_kernel_driver_active(self._interface_number):
                self._device.detach_kernel_driver(self._interface_number)
                self._detached_kernel_driver = True
                LOGGER.debug("Detached kernel driver from interface %d", self._interface_number)
        except NotImplementedError:
            # Backends without kernel driver support (macOS, Windows).
            pass
        except usb.core.USBError as exc:
            raise TransportConnectError(
                f"Could not detach kernel driver from interface {self._interface_number}: {exc}"
            ) from exc

        try:
            usb.util.claim_interface(self._device, self._interface_number)
        except usb.core.USBError as exc:
            self._reattach_kernel_driver()
            raise TransportConnectError(
                f"Could not claim interface {self._interface_number}: {exc}"
            ) from exc
        self._is_open = True

    def close(self) -> None:
        if not self._is_open:
            return
        self._is_open = False
        try:
            usb.util.release_interface(self._device, self._interface_number)
        except usb.core.USBError as exc:
            LOGGER.warning("Releasing interface %d failed: %s", self._interface_number, exc)
        finally:
            self._reattach_kernel_driver()
            usb.util.dispose_resources(self._device)

    def _reattach_kernel_driver(self) -> None:
        # The mouse stays dead as a pointer until its HID driver is back.
        if not self._detached_kernel_driver:
            return
        try:
            self._device.attach_kernel_driver(self._interface_number)
        except usb.core.USBError as exc:
            LOGGER.warning("Reattaching kernel driver to interface %d failed: %s", self._interface_number, exc)
            return
        self._detached_kernel_driver = False
        LOGGER.debug("Reattached kernel driver to interface %d", self._interface_number)

    def __enter__(self) -> USBHIDTransport:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def send(self, payload: bytes) -> None:
        await asyncio.to_thread(self._control_out, payload)

    async def receive(self, length: int) -> bytes:
        return await asyncio.to_thread(self._control_in, length)

    async def drain(self, length: int) -> None:
        try:
            await asyncio.to_thread(self._control_in, length)
        except TransportTimeoutError:
            LOGGER.debug("Nothing left to drain on interface %d", self._interface_number)

    def _control_out(self, payload: bytes) -> None:
        self._require_open()
        LOGGER.debug("SET_REPORT %s", payload.hex())
        with self._transfer_lock:
            try:
                written = self._device.ctrl_transfer(
                    REQUEST_TYPE_OUT,
                    HID_REQ_SET_REPORT,
                    REPORT_VALUE,
                    REPORT_INDEX,
                    payload,
                    timeout=self._timeout_ms,
                )
            except usb.core.USBTimeoutError as exc:
                raise TransportTimeoutError("SET_REPORT timed out") from exc
            except usb.core.USBError as exc:
                raise TransportSendError(f"SET_REPORT failed: {exc}") from exc
        if written != len(payload):
            raise TransportSendError(f"SET_REPORT wrote {written} of {len(payload)} bytes")

    def _control_in(self, length: int) -> bytes:
        self._require_open()
        with self._transfer_lock:
            try:
                data = self._device.ctrl_transfer(
                    REQUEST_TYPE_IN,
                    HID_REQ_GET_REPORT,
                    REPORT_VALUE,
                    REPORT_INDEX,
                    length,
                    timeout=self._timeout_ms,
                )
            except usb.core.USBTimeoutError as exc:
                raise TransportTimeoutError("GET_REPORT timed out") from exc
            except usb.core.USBError as exc:
                raise TransportSendError(f"GET_REPORT failed: {exc}") from exc
        response = bytes(data)
        LOGGER.debug("GET_REPORT %s", response.hex())
        return response

    def _require_open(self) -> None:
        if not self._is_open:
            raise TransportConnectError("USB interface is not claimed")
