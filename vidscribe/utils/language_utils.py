"""
Spoken-language detection for transcripts.

Descriptions are written, and judged, in the language the video is
spoken in. The language is detected from the transcript text with lingua.
"""

import logging
from functools import lru_cache

from lingua import LanguageDetectorBuilder

logger = logging.getLogger(__name__)

# Characters from the start of the transcript used for detection
DETECTION_SAMPLE_CHARS = 5000

# Used in prompts when detection gives no answer
UNKNOWN_LANGUAGE = "the language of the transcript"


@lru_cache(maxsize=1)
def _detector():
    return LanguageDetectorBuilder.from_all_languages().build()


def detect_language(text: str) -> str | None:
    """
    English name of the language a text is written in, e.g. "German".

    Returns None for blank text or when no language is a clear match.
    """
    sample = text[:DETECTION_SAMPLE_CHARS].strip()
    if not sample:
        return None

    language = _detector().detect_language_of(sample)
    if language is None:
        logger.debug("Transcript language could not be determined")
        return None
    return language.name.title()


def prompt_language(text: str) -> str:
    """Language phrase for a {language} prompt placeholder."""
    return detect_language(text) or UNKNOWN_LANGUAGE
