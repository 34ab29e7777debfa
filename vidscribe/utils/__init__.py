"""Helpers shared by the services: media probing, model prices and language detection."""

from vidscribe.utils.language_utils import detect_language, prompt_language
from vidscribe.utils.media_utils import VIDEO_EXTENSIONS, get_media_duration, is_video_file
from vidscribe.utils.pricing_utils import (
    calculate_cost,
    calculate_transcription_cost,
    get_model_pricing,
)

__all__ = [
    "VIDEO_EXTENSIONS",
    "calculate_cost",
    "calculate_transcription_cost",
    "detect_language",
    "get_media_duration",
    "get_model_pricing",
    "is_video_file",
    "prompt_language",
]
