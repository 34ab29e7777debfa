"""
Text summarizer for keeping LLM prompts within size limits.

Shrinks long transcripts with a bounded chunk-and-summarize loop:
split into word-aligned chunks, summarize each chunk independently,
join, and repeat until the text fits or the iteration cap is reached.
"""

import logging

from vidscribe.config import Settings, load_prompt, render_prompt
from vidscribe.services.ai_clients import ChatClient
from vidscribe.utils import prompt_language

logger = logging.getLogger(__name__)

CHUNK_SUMMARY_MAX_TOKENS = 500


def split_text_into_chunks(text: str, max_chunk_size: int) -> list[str]:
    """
    Pack whole words into chunks of at most max_chunk_size characters.

    A word longer than max_chunk_size becomes a chunk of its own rather
    than being cut.

    Returns:
        Chunks in text order (empty for blank text)
    """
    chunks: list[str] = []
    current: list[str] = []
    length = 0

    for word in text.split():
        grown = length + 1 + len(word) if current else len(word)
        if current and grown > max_chunk_size:
            chunks.append(" ".join(current))
            current, length = [word], len(word)
        else:
            current.append(word)
            length = grown

    if current:
        chunks.append(" ".join(current))
    return chunks


class TextSummarizer:
    """
    Recursive-style summarizer implemented as an explicit bounded loop.

    Example:
        summarizer = TextSummarizer(client, settings)
        short = await summarizer.summarize(long_transcript, target_length=4000)
    """

    def __init__(
        self,
        ai_client: ChatClient,
        settings: Settings,
        model: str | None = None,
    ):
        self.ai_client = ai_client
        self.settings = settings
        self.model = model or settings.summarize_model
        self.max_chunk_size = settings.summary_max_chunk_chars
        self.max_iterations = settings.summary_max_iterations

    async def summarize(self, text: str, target_length: int) -> str:
        """
        Shrink text to at most target_length characters (best effort).

        Returns the input unchanged when it already fits. Stops after
        max_iterations passes even if the result is still too long.

        Raises:
            ProviderError: If a chunk summary request fails
        """
        system_template = load_prompt("summarize", "system", self.model, self.settings)
        user_template = load_prompt("summarize", "user", self.model, self.settings)

        iteration = 0
        while len(text) > target_length and iteration < self.max_iterations:
            logger.info(f"Summarization iteration {iteration}: input {len(text)} chars")

            chunks = split_text_into_chunks(text, self.max_chunk_size)
            summaries: list[str] = []
            for chunk in chunks:
                language = prompt_language(chunk)
                reply = await self.ai_client.chat(
                    messages=[
                        {"role": "system", "content": render_prompt(system_template, language=language)},
                        {"role": "user", "content": render_prompt(user_template, text=chunk, language=language)},
                    ],
                    model=self.model,
                    temperature=0.3,
                    max_tokens=CHUNK_SUMMARY_MAX_TOKENS,
                )
                summaries.append(reply.text.strip())

            shrunk = " ".join(s for s in summaries if s)
            logger.info(f"Summarization iteration {iteration}: output {len(shrunk)} chars")

            if not shrunk or len(shrunk) >= len(text):
                logger.warning("Summarization stopped shrinking text, keeping previous pass")
                break

            text = shrunk
            iteration += 1

        return text
