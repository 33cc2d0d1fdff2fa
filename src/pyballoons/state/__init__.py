"""State layer.

Holds the only state carried across polls: the identity table that maps
balloon identifiers to their last-known positions.
"""

from pyballoons.state.identity import AssignmentStats, IdentityTracker

__all__ = ["AssignmentStats", "IdentityTracker"]
