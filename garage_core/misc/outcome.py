"""
Garage core result kinds of domain operations that may be rejected
"""

import enum


@enum.unique
class Outcome(enum.Enum):
    """
    Result of a state-changing domain operation

    The HTTP layer decides how each of these kinds is presented to clients.
    """

    OK = enum.auto()
    NOT_FOUND = enum.auto()
    FORBIDDEN = enum.auto()
    CONFLICT = enum.auto()
