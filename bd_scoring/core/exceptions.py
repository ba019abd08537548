"""
Custom Exceptions - BD Scoring Engine
bd_scoring/core/exceptions.py

Exception taxonomy for evaluation, configuration and batch retrieval.
"""

from typing import Iterable, List


class ScoringError(Exception):
    """Base exception for scoring operations."""

    pass


class InvalidData(ScoringError):
    """Company data failed structural or pillar-level validation."""

    def __init__(self, reason: str, errors: Iterable[str] = ()):
        self.reason = reason
        self.errors: List[str] = list(errors) or [reason]
        super().__init__(reason)


class ConfigurationError(ScoringError):
    """Weight configuration is invalid (negative entries or sum != 1.0)."""

    def __init__(self, reason: str, errors: Iterable[str] = ()):
        self.reason = reason
        self.errors: List[str] = list(errors) or [reason]
        super().__init__(reason)


class CalculationError(ScoringError):
    """An internal invariant was violated while computing a score."""

    def __init__(self, message: str = "Score calculation failed"):
        self.message = message
        super().__init__(message)


class InvalidPagination(ScoringError):
    """Page or page size out of range."""

    def __init__(self, page: int, page_size: int, max_page_size: int):
        self.page = page
        self.page_size = page_size
        self.max_page_size = max_page_size
        super().__init__(
            f"Invalid pagination parameters: page={page}, page_size={page_size} "
            f"(page must be >= 1, page_size between 1 and {max_page_size})"
        )


class Cancelled(ScoringError):
    """Evaluation aborted by a cancellation signal."""

    def __init__(self, message: str = "Evaluation cancelled"):
        self.message = message
        super().__init__(message)


class BatchJobNotFound(ScoringError):
    """No batch job with the given id is registered."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Batch job with ID {job_id} not found")
