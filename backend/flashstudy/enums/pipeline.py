"""
AI operation enums.

Operations are used for model selection and usage attribution in the
LLM client.
"""

from enum import Enum


class PipelineOperation(str, Enum):
    """Operations that call the generative-AI collaborator."""

    FLASHCARD_GENERATION = "flashcard_generation"
    ANSWER_GRADING = "answer_grading"
