"""Exception types raised by Beacon."""


class BeaconError(Exception):
    """Base class for Beacon errors."""


class RegistrationError(BeaconError, ValueError):
    """A registration is malformed (missing field, bad port, bad id)."""


class StoreError(BeaconError):
    """A backing store command failed."""
