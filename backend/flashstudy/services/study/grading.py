"""
Answer Grading Service

AI evaluation of a learner's typed answer against the reference answer,
returning a 0-100 score, a grading level and prefixed feedback.

The model is asked for a strict JSON object but may not comply, so the
response is parsed in three tiers:
1. Decode the whole response text as JSON
2. Decode the first balanced {...} region found in the text
3. Synthesize a result from a "score" token in the raw text (default 50)

Malformed responses therefore never surface as errors. A failing AI call
does: grading is load-bearing and the caller offers a retry.

Feedback prefixes (kept verbatim):
- "+" correct point
- "-" incorrect point
- ">" tip
"""

import json
import logging
import re
from typing import Any, Optional

from flashstudy.config import settings
from flashstudy.enums.pipeline import PipelineOperation
from flashstudy.enums.study import GradingLevel
from flashstudy.middleware.error_handling import ValidationError
from flashstudy.models.study import GradingResult, level_for_score, round_half_up
from flashstudy.services.llm.client import LLMClient, build_messages
from flashstudy.services.study.session import StudySession

logger = logging.getLogger(__name__)


GRADING_PROMPT = """You are an AI tutor grading a student's answer to a flashcard question.

Question: {question}
Correct answer: {reference_answer}
Student's answer: {user_answer}

Grade the student's answer on a scale from 0 to 100, where:
- 0-30: Incorrect (missing key concepts or contains significant errors)
- 31-60: Partially correct (contains some correct elements but has notable gaps)
- 61-90: Good (mostly correct with minor errors or omissions)
- 91-100: Perfect (exact match or semantically equivalent with all key points)

Be lenient in your grading - if the answer captures the main concept, even with different wording, consider it correct.
Focus on conceptual understanding rather than exact wording.

For ALL answers, provide specific feedback:
- Prefix correct parts with "+"
- Prefix incorrect parts with "-"
- Prefix helpful tips with ">"

Make sure to include at least one item of each type of feedback when relevant.

Provide your assessment in the following JSON format only, with no additional text:
{{
  "score": [number between 0-100],
  "isCorrect": [boolean, true if score >= 70],
  "level": ["perfect" if 91-100, "good" if 61-90, "partial" if 31-60, "incorrect" if 0-30],
  "feedback": [brief, encouraging feedback about the overall answer],
  "specificFeedback": [array of strings with specific points, using the prefix system described above]
}}
"""

GRADING_SYSTEM_PROMPT = (
    "You are a fair and encouraging tutor. Always return valid JSON."
)

FALLBACK_FEEDBACK = "Your answer has been evaluated. Here's some feedback:"
FALLBACK_SPECIFIC_FEEDBACK = [
    "+ Your answer contains some correct elements",
    "- Make sure to include all key points from the correct answer",
    "> Review the correct answer to see what you might have missed",
]

SCORE_PATTERN = re.compile(r"score\W{0,3}(\d{1,3})", re.IGNORECASE)


# =============================================================================
# Response parsing
# =============================================================================


def _clamp_score(score: int) -> int:
    return max(0, min(100, score))


def _decode_object(text: str) -> Optional[dict]:
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return payload if isinstance(payload, dict) else None


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index of the brace closing the one at `start`, ignoring braces in strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def extract_json_object(text: str) -> Optional[dict]:
    """
    Decode the first balanced {...} region of the text that is valid JSON.

    Each opening brace is tried in turn, so prose containing stray braces
    before the real object does not hide it.
    """
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            payload = _decode_object(text[start : end + 1])
            if payload is not None:
                return payload
        start = text.find("{", start + 1)
    return None


def _coerce_score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _clamp_score(round_half_up(value))
    if isinstance(value, str):
        try:
            return _clamp_score(round_half_up(float(value.strip().rstrip("%"))))
        except ValueError:
            return None
    return None


def result_from_payload(payload: dict) -> Optional[GradingResult]:
    """
    Build a GradingResult from a decoded JSON object.

    Fields present in the payload are kept; a missing or unknown level is
    derived from the score and a missing isCorrect from the correctness
    threshold. Returns None when the payload has no usable score.
    """
    score = _coerce_score(payload.get("score"))
    if score is None:
        return None

    is_correct = payload.get("isCorrect", payload.get("is_correct"))
    if not isinstance(is_correct, bool):
        is_correct = score >= settings.GRADING_CORRECT_THRESHOLD

    try:
        level = GradingLevel(str(payload.get("level", "")).strip().lower())
    except ValueError:
        level = level_for_score(score)

    feedback = payload.get("feedback")
    specific = payload.get("specificFeedback", payload.get("specific_feedback", []))
    if isinstance(specific, str):
        specific = [specific]
    elif not isinstance(specific, list):
        specific = []

    return GradingResult(
        score=score,
        is_correct=is_correct,
        level=level,
        feedback=feedback if isinstance(feedback, str) else "",
        specific_feedback=[str(item) for item in specific],
    )


def fallback_grading_result(text: str) -> GradingResult:
    """Synthesize a grade from a "score" token in free text."""
    match = SCORE_PATTERN.search(text or "")
    score = (
        _clamp_score(int(match.group(1)))
        if match
        else settings.GRADING_FALLBACK_SCORE
    )
    return GradingResult(
        score=score,
        is_correct=score >= settings.GRADING_CORRECT_THRESHOLD,
        level=level_for_score(score),
        feedback=FALLBACK_FEEDBACK,
        specific_feedback=list(FALLBACK_SPECIFIC_FEEDBACK),
    )


def parse_grading_response(text: str) -> GradingResult:
    """
    Parse an AI grading response. Never raises for malformed text.

    Args:
        text: Raw response text

    Returns:
        GradingResult from the JSON payload, or the regex fallback
    """
    payload = _decode_object(text)
    if payload is None:
        payload = extract_json_object(text or "")

    if payload is not None:
        result = result_from_payload(payload)
        if result is not None:
            return result

    logger.warning("Grading response was not usable JSON, using score fallback")
    return fallback_grading_result(text)


# =============================================================================
# Grader
# =============================================================================


class AnswerGrader:
    """
    AI-backed answer grading.

    Attributes:
        llm: LLM client
        model: Model override tried before the configured chain (optional)
    """

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm = llm_client
        self.model = model

    async def grade(
        self,
        question: str,
        reference_answer: str,
        user_answer: str,
    ) -> GradingResult:
        """
        Grade a typed answer.

        Args:
            question: Card question
            reference_answer: Card answer
            user_answer: What the learner typed

        Returns:
            GradingResult

        Raises:
            ValidationError: If the answer is blank (no AI call is made)
            LLMError: If the AI collaborator is unavailable
        """
        if not user_answer or not user_answer.strip():
            raise ValidationError("Please enter your answer before grading")

        prompt = GRADING_PROMPT.format(
            question=question,
            reference_answer=reference_answer,
            user_answer=user_answer,
        )
        response, usage = await self.llm.complete(
            operation=PipelineOperation.ANSWER_GRADING,
            messages=build_messages(prompt, system_prompt=GRADING_SYSTEM_PROMPT),
            model=self.model,
            json_mode=True,
        )

        result = parse_grading_response(response)
        logger.info(
            f"Graded answer: score={result.score}, level={result.level.value} ({usage})"
        )
        return result


async def grade_current_card(
    session: StudySession,
    grader: AnswerGrader,
    answer: str,
) -> Optional[GradingResult]:
    """
    Grade the answer for the session's current card and fold it in.

    Args:
        session: Active study session
        grader: Answer grader
        answer: Typed answer

    Returns:
        The applied GradingResult, or None if the user moved on while the
        grade was in flight

    Raises:
        LLMError: If grading failed (the session is left ready for a retry)
    """
    ticket = session.begin_grading(answer)
    try:
        result = await grader.grade(ticket.card.question, ticket.card.answer, answer)
    except Exception:
        session.abort_grading(ticket)
        raise

    if not session.apply_grading(ticket, result):
        return None
    return result
