"""
Flashcard Generation Service

Generates question/answer flashcards from study text and/or an image
using the AI collaborator.

The model is asked for a JSON array of {question, answer} objects. The
first [...] region of the response is decoded and validated. When the AI
call fails or the response is unusable, basic sentence-derived cards are
built from the text instead, padded to the requested count, so set
creation still succeeds.

Usage:
    generator = FlashcardGenerator(get_llm_client())
    drafts, used_fallback = await generator.generate(text, count=10)
"""

import json
import logging
import re
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from flashstudy.enums.pipeline import PipelineOperation
from flashstudy.middleware.error_handling import LLMError
from flashstudy.models.study import FlashcardDraft
from flashstudy.services.llm.client import LLMClient, build_messages

logger = logging.getLogger(__name__)


GENERATION_PROMPT = """Generate {count} flashcards from the following content{image_clause}.
Make sure the flashcards are directly relevant to the content provided.
Each flashcard should have a clear question and answer that helps with learning the material.
Format the output as a JSON array of objects, each with 'question' and 'answer' fields.
{image_instruction}
The content is:

{content}
"""

IMAGE_INSTRUCTION = "If there's an image, include questions about what's shown in the image.\n"

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")

FALLBACK_ANSWER = "This refers to a key concept in the provided content."
FILLER_ANSWER = "This is a key concept from the provided material."


def parse_flashcards(text: str) -> list[FlashcardDraft]:
    """
    Extract flashcards from the first [...] region of a response.

    Args:
        text: Raw response text

    Returns:
        Parsed flashcards

    Raises:
        ValueError: If no valid, non-empty flashcard array is present
    """
    match = JSON_ARRAY_PATTERN.search(text or "")
    if not match:
        raise ValueError("Could not extract a JSON array from the AI response")

    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Flashcard array is not valid JSON: {e}") from e

    if not isinstance(items, list) or not items:
        raise ValueError("Invalid or empty flashcards generated")

    try:
        return [
            FlashcardDraft(question=str(item["question"]), answer=str(item["answer"]))
            for item in items
        ]
    except (KeyError, TypeError, PydanticValidationError) as e:
        raise ValueError(f"Flashcard entry is missing question or answer: {e}") from e


def fallback_flashcards(text: str, count: int) -> list[FlashcardDraft]:
    """
    Build basic flashcards from the sentences of the text.

    Sentences shorter than 15 characters or with fewer than three words
    longer than three letters are skipped. Generic cards pad the result
    to `count`.
    """
    sentences = [
        s.strip() for s in SENTENCE_SPLIT_PATTERN.split(text or "") if len(s.strip()) > 10
    ]

    cards: list[FlashcardDraft] = []
    for sentence in sentences[:count]:
        if len(sentence) < 15:
            continue
        if len([w for w in sentence.split() if len(w) > 3]) < 3:
            continue
        cards.append(
            FlashcardDraft(
                question=f'What does this mean: "{sentence}"?',
                answer=FALLBACK_ANSWER,
            )
        )

    excerpt = (text or "").strip()[:50]
    while len(cards) < count:
        cards.append(
            FlashcardDraft(
                question=f'Important concept from the content: "{excerpt}..."',
                answer=FILLER_ANSWER,
            )
        )
    return cards


class FlashcardGenerator:
    """
    AI flashcard generation with a local fallback.

    Attributes:
        llm: LLM client
        model: Model override tried before the configured chain (optional)
    """

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm = llm_client
        self.model = model

    async def generate(
        self,
        text: str,
        count: int,
        image_data: Optional[str] = None,
    ) -> tuple[list[FlashcardDraft], bool]:
        """
        Generate flashcards for the content.

        Args:
            text: Study material
            count: Number of cards requested
            image_data: Optional image (data URL or base64)

        Returns:
            Tuple of (flashcards, used_fallback)
        """
        prompt = GENERATION_PROMPT.format(
            count=count,
            image_clause=" and image" if image_data else "",
            image_instruction=IMAGE_INSTRUCTION if image_data else "",
            content=text,
        )

        try:
            response, usage = await self.llm.complete(
                operation=PipelineOperation.FLASHCARD_GENERATION,
                messages=build_messages(prompt),
                model=self.model,
                image_data=image_data,
            )
            cards = parse_flashcards(response)
        except (LLMError, ValueError) as e:
            logger.warning(f"Flashcard generation failed, using basic cards: {e}")
            return fallback_flashcards(text, count), True

        logger.info(
            f"Generated {len(cards)} flashcards ({count} requested) ({usage})"
        )
        return cards, False
