"""
Exception types raised by the mediastream package.
Selection and acquisition errors are raised synchronously from provisioning;
runtime failures of a running track are delivered through its ended callback.
"""


class MediaStreamError(Exception):
    """Base class for all mediastream errors"""


class SelectionError(MediaStreamError):
    """No device/codec combination could be selected"""


class NoMatchError(SelectionError):
    """Requested codec is not registered for the requested media kind"""


class NoDeviceError(SelectionError):
    """No registered device can supply media for the requested kind"""


class DeviceOpenError(MediaStreamError):
    """Device could not be acquired"""


class EncoderError(MediaStreamError):
    """Encoder could not be built for the selected properties"""


class DriverError(MediaStreamError):
    """Driver was asked for a capability it does not have"""


class RegistryError(MediaStreamError):
    """Invalid codec or driver registration"""


class ComparisonError(MediaStreamError, TypeError):
    """A numeric and a non-numeric value were compared for the same field"""
