"""
Core Package - BD Scoring Engine
bd_scoring/core/__init__.py

Core infrastructure: exceptions, dependencies.
"""

from bd_scoring.core.exceptions import (
    BatchJobNotFound,
    CalculationError,
    Cancelled,
    ConfigurationError,
    InvalidData,
    InvalidPagination,
    ScoringError,
)

__all__ = [
    "BatchJobNotFound",
    "CalculationError",
    "Cancelled",
    "ConfigurationError",
    "InvalidData",
    "InvalidPagination",
    "ScoringError",
]
