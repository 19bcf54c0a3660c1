"""Errors raised while building message programs."""


class ProgramBuildError(Exception):
    """Base class for all program construction failures."""

    pass


class BuilderContractError(ProgramBuildError):
    """A builder precondition was violated.

    Raised for programming mistakes such as depositing before a beneficiary
    is set, reanchoring before the current hop is known, or dividing a fee
    by zero. These are never recoverable at runtime.
    """

    pass


class ReanchorError(ProgramBuildError):
    """A location cannot be expressed relative to the requested target."""

    pass


class UnsupportedError(ProgramBuildError):
    """The requested combination of options is not implemented."""

    pass


class ProgramValidationError(ProgramBuildError):
    """A built program failed validation and must not be dispatched."""

    pass
