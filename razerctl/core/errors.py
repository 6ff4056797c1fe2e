"""Domain-specific errors for razerctl."""


class RazerctlError(Exception):
    """Base error for razerctl."""


class ValidationError(RazerctlError):
    """Raised when caller input is rejected before any device I/O."""


class ProfileValidationError(RazerctlError):
    """Raised when a device profile file does not conform to schema or semantics."""


class ProfileLoadError(RazerctlError):
    """Raised when loading profile sources fails."""


class UnsupportedDeviceError(RazerctlError):
    """Raised when no profile exists for a USB product id."""


class UnsupportedOperationError(RazerctlError):
    """Raised when the resolved profile does not declare an operation."""


class DeviceSelectionError(RazerctlError):
    """Raised when device matching cannot resolve a single target."""


class DeviceDiscoveryError(RazerctlError):
    """Raised when USB device enumeration fails."""


class ProtocolDecodeError(RazerctlError):
    """Raised when a device response has the wrong size or an unmapped value."""


class TransportError(RazerctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when opening or claiming the USB interface fails."""


class TransportSendError(TransportError):
    """Raised when a control transfer fails."""


class TransportTimeoutError(TransportError):
    """Raised when a control transfer times out."""
