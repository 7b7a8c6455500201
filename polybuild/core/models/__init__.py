"""
Domain models — Pydantic types for polybuild.

All models are re-exported here for convenient access:

    from polybuild.core.models import ProjectDescriptor, ParameterTuple, ToolVariant
"""

from polybuild.core.models.action import ActionResult, Invocation
from polybuild.core.models.markers import (
    Marker,
    MarkerRole,
    MarkerSpec,
    ProjectDescriptor,
)
from polybuild.core.models.params import ParameterTuple
from polybuild.core.models.stamp import StampRecord
from polybuild.core.models.variant import ToolVariant

__all__ = [
    # action.py
    "ActionResult",
    "Invocation",
    # markers.py
    "Marker",
    "MarkerRole",
    "MarkerSpec",
    # params.py
    "ParameterTuple",
    "ProjectDescriptor",
    # stamp.py
    "StampRecord",
    # variant.py
    "ToolVariant",
]
