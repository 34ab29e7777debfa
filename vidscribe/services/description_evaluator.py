"""
Description evaluator service.

Asks an LLM to pick the best of several description candidates and
parses a 1-based index from its answer, retrying a bounded number of
times when the answer is not a valid number.
"""

import logging
import re

from vidscribe.config import Settings, load_prompt, render_prompt
from vidscribe.services.ai_clients import ChatClient
from vidscribe.services.collaborators import DescriptionEvaluationError
from vidscribe.services.description_generator import fit_transcript
from vidscribe.services.text_summarizer import TextSummarizer
from vidscribe.utils import prompt_language

logger = logging.getLogger(__name__)

REMINDER = "\nRemember, respond with ONLY the number of the best description, nothing else."
ANSWER_MAX_TOKENS = 10

_ANSWER_RE = re.compile(r"^\D{0,3}?(\d+)\W{0,3}$")


def format_descriptions(descriptions: list[str]) -> str:
    """Render candidates as numbered blocks: "1. text"."""
    return "".join(f"{i}. {text}\n\n" for i, text in enumerate(descriptions, start=1))


def parse_choice(answer: str, candidate_count: int) -> int | None:
    """
    Parse the evaluator's answer.

    Accepts a bare number, optionally wrapped in a little punctuation
    ("2", "2.", "#2", "(2)").

    Returns:
        1-based index, or None if the answer is not a number in range
    """
    match = _ANSWER_RE.match(answer.strip())
    if not match:
        return None
    index = int(match.group(1))
    if 1 <= index <= candidate_count:
        return index
    return None


class LLMDescriptionEvaluator:
    """
    Ranks description candidates with an LLM.

    Example:
        async with ClaudeClient.from_settings(settings) as client:
            evaluator = LLMDescriptionEvaluator(client, settings)
            best = await evaluator.evaluate(texts, transcript, "trip.mp4")
    """

    def __init__(
        self,
        ai_client: ChatClient,
        settings: Settings,
        summarizer: TextSummarizer | None = None,
        model: str | None = None,
    ):
        self.ai_client = ai_client
        self.settings = settings
        self.summarizer = summarizer
        self.model = model or settings.evaluate_model
        self.max_attempts = settings.evaluate_max_attempts

    async def evaluate(self, candidates: list[str], transcript: str, filename_hint: str) -> int:
        """
        Pick the best candidate.

        Args:
            candidates: Candidate texts in ordinal order
            transcript: Video transcript
            filename_hint: Base filename

        Returns:
            1-based index into candidates

        Raises:
            ValueError: If candidates is empty
            DescriptionEvaluationError: If no valid answer within max_attempts
            ProviderError: If a request fails
        """
        if not candidates:
            raise ValueError("No candidates to evaluate")

        if len(candidates) == 1:
            return 1

        prompt_transcript = await fit_transcript(
            transcript, self.summarizer, self.settings.prompt_max_chars
        )
        values = {
            "filename": filename_hint,
            "transcript": prompt_transcript,
            "descriptions": format_descriptions(candidates),
            "language": prompt_language(transcript),
        }
        system_prompt = render_prompt(
            load_prompt("evaluate", "system", self.model, self.settings), **values
        )
        prompt = render_prompt(load_prompt("evaluate", "user", self.model, self.settings), **values)

        for attempt in range(1, self.max_attempts + 1):
            reply = await self.ai_client.chat(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                temperature=0.0,
                max_tokens=ANSWER_MAX_TOKENS,
            )

            choice = parse_choice(reply.text, len(candidates))
            if choice is not None:
                logger.info(f"Best description for {filename_hint}: {choice}/{len(candidates)}")
                return choice

            logger.warning(
                f"Unparseable evaluation answer (attempt {attempt}/{self.max_attempts}): "
                f"{reply.text.strip()[:50]!r}"
            )
            prompt += REMINDER

        raise DescriptionEvaluationError(
            f"No valid ranking for {filename_hint} after {self.max_attempts} attempts"
        )
