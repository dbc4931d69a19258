"""Exceptions raised while checking and running Wrench programs."""


class WrenchError(Exception):
    """Base class for every error reported by the Wrench toolchain."""


class InterpretationError(WrenchError):
    """Raised when a program fails while it is being evaluated."""


class TypeCheckError(WrenchError):
    """Raised when a program is rejected by the type checker."""