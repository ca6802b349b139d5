"""Capability graph resolution, doctor and export."""

from .doctor import Doctor, DoctorResult
from .resolver import (
    STATUS_DEGRADED,
    STATUS_OK,
    STATUS_SAFE_MODE,
    CapabilityGraph,
    ResolvedApp,
    ResolvedConsume,
    resolve,
)

__all__ = [
    "CapabilityGraph",
    "Doctor",
    "DoctorResult",
    "ResolvedApp",
    "ResolvedConsume",
    "STATUS_DEGRADED",
    "STATUS_OK",
    "STATUS_SAFE_MODE",
    "resolve",
]
