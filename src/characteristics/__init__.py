"""Method of characteristics: point location, domain-exit policy and RHS assembly."""

from .locator import Location, NOT_FOUND, PointLocator
from .exit_policy import (
    ExitRule,
    InletClampRule,
    WallRule,
    OutflowClampRule,
    ExitPolicy,
    create_exit_policy,
)
from .rhs import CharacteristicsRHS

__all__ = [
    "Location",
    "NOT_FOUND",
    "PointLocator",
    "ExitRule",
    "InletClampRule",
    "WallRule",
    "OutflowClampRule",
    "ExitPolicy",
    "create_exit_policy",
    "CharacteristicsRHS",
]
