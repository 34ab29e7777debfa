"""Recording test doubles for the stage collaborators and LLM clients."""

import asyncio
from pathlib import Path

from vidscribe.config import Settings
from vidscribe.services.ai_clients import ChatReply
from vidscribe.services.collaborators import (
    AudioExtractionError,
    Collaborators,
    DescriptionEvaluationError,
    DescriptionGenerationError,
)


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Settings isolated from the developer's .env, scratch under tmp_path."""
    values = {
        "temp_dir": tmp_path / ".tmp",
        "store_path": tmp_path / "descriptions.json",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def touch_videos(root: Path, *names: str) -> list[Path]:
    paths = []
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"fake video")
        paths.append(path)
    return paths


# ---------------------------------------------------------------------------
# Stage collaborators
# ---------------------------------------------------------------------------


class FakeExtractor:
    """Writes a placeholder WAV; names in `silent` have no audio, names in `fail` raise."""

    def __init__(self, silent=(), fail=()):
        self.silent = set(silent)
        self.fail = set(fail)
        self.calls: list[tuple[Path, Path]] = []

    async def extract(self, video_path: Path, audio_path: Path) -> bool:
        self.calls.append((Path(video_path), Path(audio_path)))
        name = Path(video_path).name
        if name in self.fail:
            raise AudioExtractionError(f"ffmpeg exploded on {name}")
        if name in self.silent:
            return False
        audio_path.parent.mkdir(parents=True, exist_ok=True)
        audio_path.write_bytes(b"RIFF")
        return True


class FakeTranscriber:
    def __init__(self, text: str = "hello from the video", fail=False):
        self.text = text
        self.fail = fail
        self.calls: list[tuple[Path, float]] = []

    async def transcribe(self, audio_path: Path, max_chunk_duration: float) -> str:
        self.calls.append((Path(audio_path), max_chunk_duration))
        if self.fail:
            raise RuntimeError("whisper unavailable")
        return self.text


class FakeGenerator:
    """
    Returns "<filename> #<n>" texts numbered across all calls.

    fail_on: filename whose generation fails after producing `fail_after` texts.
    on_generate: optional callback run before returning (e.g. to set a cancel event).
    """

    def __init__(self, fail_on: str | None = None, fail_after: int = 0, on_generate=None):
        self.fail_on = fail_on
        self.fail_after = fail_after
        self.on_generate = on_generate
        self.calls: list[tuple[str, str, int]] = []
        self.produced = 0

    async def generate(self, transcript: str, filename_hint: str, count: int) -> list[str]:
        self.calls.append((transcript, filename_hint, count))
        texts = []
        for _ in range(count):
            if filename_hint == self.fail_on and len(texts) >= self.fail_after:
                raise DescriptionGenerationError("model overloaded", partial=texts)
            self.produced += 1
            texts.append(f"{filename_hint} #{self.produced}")
        if self.on_generate is not None:
            self.on_generate()
        return texts


class FakeEvaluator:
    def __init__(self, choice: int = 1, fail_on: str | None = None):
        self.choice = choice
        self.fail_on = fail_on
        self.calls: list[tuple[list[str], str, str]] = []

    async def evaluate(self, candidates: list[str], transcript: str, filename_hint: str) -> int:
        self.calls.append((list(candidates), transcript, filename_hint))
        if filename_hint == self.fail_on:
            raise DescriptionEvaluationError("no parseable ranking")
        return min(self.choice, len(candidates))


def make_collaborators(
    extractor: FakeExtractor | None = None,
    transcriber: FakeTranscriber | None = None,
    generator: FakeGenerator | None = None,
    evaluator: FakeEvaluator | None = None,
) -> Collaborators:
    return Collaborators(
        extractor=extractor or FakeExtractor(),
        transcriber=transcriber or FakeTranscriber(),
        generator=generator or FakeGenerator(),
        evaluator=evaluator or FakeEvaluator(),
    )


def total_calls(collaborators: Collaborators) -> int:
    return sum(
        len(c.calls)
        for c in (
            collaborators.extractor,
            collaborators.transcriber,
            collaborators.generator,
            collaborators.evaluator,
        )
    )


# ---------------------------------------------------------------------------
# LLM client
# ---------------------------------------------------------------------------


class FakeChatClient:
    """ChatClient double replying from a script; an Exception in the script is raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def chat(self, messages, model=None, temperature=0.7, max_tokens=None):
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ChatReply(reply, model or "fake-model", input_tokens=100, output_tokens=20)

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def run(coro):
    return asyncio.run(coro)
