"""
Centralized enum definitions for the application.

All enums are organized by domain:
- contributions.py: Contribution event types
- study.py: Grading levels and study session states
- pipeline.py: AI operations
- errors.py: Error taxonomy
- api.py: Rate limit categories

Usage:
    from flashstudy.enums import ContributionType, GradingLevel

    # Or import from specific module
    from flashstudy.enums.study import StudyState
"""

from flashstudy.enums.api import RateLimitType
from flashstudy.enums.contributions import ContributionType
from flashstudy.enums.errors import ErrorKind
from flashstudy.enums.pipeline import PipelineOperation
from flashstudy.enums.study import GradingLevel, StudyState

__all__ = [
    "ContributionType",
    "ErrorKind",
    "GradingLevel",
    "PipelineOperation",
    "RateLimitType",
    "StudyState",
]
