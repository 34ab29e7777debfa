"""
Settings and file-based resources (prompt templates, model prices).

Everything is read from the environment or a .env file. Prompts and
models.yaml ship inside the package under resources/; PROMPTS_DIR can
point at a folder of replacement templates.
"""

import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BUILTIN_RESOURCES_DIR = Path(__file__).parent / "resources"

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Transcription
    whisper_url: str = "https://api.openai.com"
    whisper_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("whisper_api_key", "openai_api_key"),
    )
    whisper_model: str = "whisper-1"
    whisper_language: str | None = None  # unset: Whisper detects it

    # Description models; "claude*" names go to Anthropic, the rest to Ollama
    anthropic_api_key: str | None = None
    ollama_url: str = "http://localhost:11434"
    describe_model: str = "claude-sonnet-4-5"
    evaluate_model: str = "claude-sonnet-4-5"
    summarize_model: str = "claude-sonnet-4-5"
    llm_timeout: int = 300

    # Pipeline limits
    candidate_count: int = 3
    transcribe_max_chunk_seconds: float = 300.0
    prompt_max_chars: int = 12000
    summary_max_chunk_chars: int = 8000
    summary_max_iterations: int = 10
    evaluate_max_attempts: int = 3
    ffmpeg_timeout: int = 600

    temp_dir: Path = Path(".tmp")
    store_path: Path = Path("descriptions.json")
    resources_dir: Path = BUILTIN_RESOURCES_DIR
    prompts_dir: Path | None = None

    # "structured" or "simple"
    log_level: str = "INFO"
    log_format: str = "structured"
    log_level_ai_clients: str | None = None
    log_level_pipeline: str | None = None
    log_level_transcriber: str | None = None
    log_level_generator: str | None = None
    log_level_evaluator: str | None = None

    @field_validator(
        "candidate_count",
        "evaluate_max_attempts",
        "summary_max_iterations",
        "summary_max_chunk_chars",
        "prompt_max_chars",
    )
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("transcribe_max_chunk_seconds")
    @classmethod
    def _positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


def model_family(model: str) -> str:
    """
    Prompt variant name for a model: "gemma2:9b" -> "gemma",
    "qwen2.5:14b" -> "qwen", "claude-sonnet-4-5" -> "claude-sonnet".
    """
    return model.split(":")[0].rstrip("0123456789.-")


def _prompt_candidates(stage: str, component: str, model: str | None, settings: Settings) -> list[Path]:
    roots = []
    if settings.prompts_dir and settings.prompts_dir.exists():
        roots.append(settings.prompts_dir)
    roots.append(settings.resources_dir / "prompts")

    names = [f"{component}.md"]
    if model:
        names.insert(0, f"{component}_{model_family(model)}.md")

    return [root / stage / name for root in roots for name in names]


def load_prompt(
    stage: str,
    component: str,
    model: str | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Read the template for a stage ("generate", "evaluate", "summarize")
    and component ("system", "user").

    PROMPTS_DIR is searched before the built-in prompts; in each, a
    model-family variant such as user_gemma.md beats the generic file.

    Raises:
        FileNotFoundError: If no candidate file exists
    """
    settings = settings or get_settings()
    candidates = _prompt_candidates(stage, component, model, settings)

    for path in candidates:
        if path.is_file():
            return path.read_text(encoding="utf-8")

    tried = ", ".join(str(p) for p in candidates)
    raise FileNotFoundError(f"No {stage}/{component} prompt for model {model!r} (tried {tried})")


def render_prompt(template: str, **values: str) -> str:
    """
    Fill {name} placeholders in a single pass.

    Substituted text is never scanned again, so a transcript that happens
    to contain "{filename}" stays as spoken. Unknown names are kept.
    """
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def load_models_config(settings: Settings | None = None) -> dict:
    """Parsed resources/models.yaml (prices per model)."""
    settings = settings or get_settings()
    text = (settings.resources_dir / "models.yaml").read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}
