# coding: utf-8
"""
Public subclasses of different Exceptions
"""


class CorecheckException(Exception):
    """Base class for corecheck exceptions"""

    pass


class UnknownLogicError(CorecheckException):
    """This exception is raised if a benchmark declares a logic that has no
    configured set of validation solvers."""

    def __init__(self, logic):
        super().__init__(f"No validation solvers configured for logic: {logic!r}")
        self.logic = logic


class MissingLogicError(UnknownLogicError):
    """The benchmark carries no (set-logic ...) command."""

    def __init__(self, source):
        CorecheckException.__init__(self, f"No (set-logic ...) command in {source}")
        self.logic = None


class ToolNotFoundError(CorecheckException):
    """An external tool (scrambler or validator) could not be located."""

    pass

