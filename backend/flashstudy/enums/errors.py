"""
Error taxonomy enums.

Categorizes failures from collaborators so callers can decide whether a
failure is recovered locally (decorative data) or surfaced to the user.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """
    Kinds of failure a core operation can report.

    - COLLABORATOR_UNAVAILABLE: persistence or AI call failed or timed out
    - MALFORMED_RESPONSE: AI collaborator returned something unparseable
    - VALIDATION: input rejected before any network call
    """

    COLLABORATOR_UNAVAILABLE = "collaborator_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    VALIDATION = "validation"
