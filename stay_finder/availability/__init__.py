"""Availability query engine.

Main entry point: engine.AvailabilityEngine
"""
from .engine import (
    AvailabilityConfig,
    AvailabilityEngine,
    AvailabilityQuery,
    AvailabilityResult,
    RESULT_COLUMNS,
)

__all__ = [
    'AvailabilityConfig',
    'AvailabilityEngine',
    'AvailabilityQuery',
    'AvailabilityResult',
    'RESULT_COLUMNS',
]
