class AttendanceError(Exception):
    """Base class for errors raised by the attendance core."""


class StoreError(AttendanceError):
    """The backing store could not be read or written."""


class PolicyViolation(AttendanceError):
    """A write was attempted on a day that is not currently editable."""


class ValidationError(AttendanceError):
    """Bad input: unknown status, missing identifier, impossible month."""
