"""
Concurrency helpers shared by ingestion and query stages.

Exports: BoundedExecutor, TaskOutcome, CancellationToken, RetryPolicy
"""

from .executor import BoundedExecutor, CancellationToken, TaskOutcome
from .retry import RetryPolicy, exponential_backoff, linear_backoff

__all__ = [
    "BoundedExecutor",
    "CancellationToken",
    "TaskOutcome",
    "RetryPolicy",
    "exponential_backoff",
    "linear_backoff",
]
