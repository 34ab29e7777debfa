"""
Description generator service.

Generates independent description candidates for a video from its
transcript and filename via an LLM.
"""

import logging
import time

from vidscribe.config import Settings, load_prompt, render_prompt
from vidscribe.services.ai_clients import ChatClient
from vidscribe.services.collaborators import DescriptionGenerationError
from vidscribe.services.text_summarizer import TextSummarizer
from vidscribe.utils import prompt_language

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("vidscribe.perf")

# Higher temperature so repeated candidates differ from each other
CANDIDATE_TEMPERATURE = 0.9


async def fit_transcript(
    transcript: str,
    summarizer: TextSummarizer | None,
    max_chars: int,
) -> str:
    """Shrink a transcript with the summarizer if it exceeds max_chars."""
    if len(transcript) <= max_chars or summarizer is None:
        return transcript
    logger.info(f"Transcript too long for prompt ({len(transcript)} chars), summarizing")
    return await summarizer.summarize(transcript, max_chars)


class LLMDescriptionGenerator:
    """Generates description candidates with one chat call per candidate.

    Long transcripts are shrunk with TextSummarizer before prompting, and
    the prompts ask for the language detected in the transcript.
    A failed call stops generation; the texts produced so far travel
    with the raised DescriptionGenerationError.

    Example:
        async with ClaudeClient.from_settings(settings) as client:
            generator = LLMDescriptionGenerator(client, settings)
            texts = await generator.generate(transcript, "trip.mp4", count=3)
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
        self.model = model or settings.describe_model

    async def generate(self, transcript: str, filename_hint: str, count: int) -> list[str]:
        """Generate `count` description candidates.

        Args:
            transcript: Full transcript of the video
            filename_hint: Base filename, used as extra context
            count: Number of candidates to produce

        Returns:
            List of exactly `count` non-empty description texts

        Raises:
            DescriptionGenerationError: If a request fails or returns nothing
        """
        if count <= 0:
            return []

        try:
            prompt_transcript = await fit_transcript(
                transcript, self.summarizer, self.settings.prompt_max_chars
            )
            values = {
                "filename": filename_hint,
                "transcript": prompt_transcript,
                "language": prompt_language(transcript),
            }
            system_prompt = render_prompt(
                load_prompt("generate", "system", self.model, self.settings), **values
            )
            user_prompt = render_prompt(
                load_prompt("generate", "user", self.model, self.settings), **values
            )
        except Exception as e:
            raise DescriptionGenerationError(f"Cannot prepare prompt: {e}") from e

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        descriptions: list[str] = []
        total_cost = 0.0
        start = time.monotonic()

        for attempt in range(count):
            try:
                reply = await self.ai_client.chat(
                    messages=messages,
                    model=self.model,
                    temperature=CANDIDATE_TEMPERATURE,
                )
            except Exception as e:
                raise DescriptionGenerationError(
                    f"Error generating description {attempt + 1}/{count}: {e}",
                    partial=descriptions,
                ) from e

            total_cost += reply.cost
            content = reply.text.strip()
            if not content:
                raise DescriptionGenerationError(
                    f"Empty description {attempt + 1}/{count} from {self.model}",
                    partial=descriptions,
                )
            descriptions.append(content)

        logger.info(
            f"Generated {len(descriptions)} description(s) for {filename_hint} in {values['language']}"
        )
        perf_logger.info(
            f"PERF | generate | "
            f"count={count} | "
            f"prompt_chars={len(user_prompt)} | "
            f"cost=${total_cost:.4f} | "
            f"time={time.monotonic() - start:.1f}s"
        )

        return descriptions
