from __future__ import annotations

import base64
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from video_transcript_summary.config import Settings
from video_transcript_summary.errors import ConfigurationError, SummarizationError
from video_transcript_summary.summarizer import (
    GeminiSummarizer,
    OpenAICompatibleSummarizer,
    SummaryLevel,
    build_summary_prompt,
    create_summarizer,
)

INSTRUCTIONS = {
    "core": "very short and concise",
    "concise": "detailed summary",
    "detailed": "bullet points",
}


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("core", "core"),
        ("concise", "concise"),
        ("detailed", "detailed"),
        ("extended", "detailed"),
        (None, "detailed"),
        (SummaryLevel.CORE, "core"),
    ],
)
def test_prompt_contains_level_instruction_exactly_once(level, expected: str) -> None:
    prompt = build_summary_prompt("The quick brown fox jumps over the lazy dog", level)

    assert prompt.count(INSTRUCTIONS[expected]) == 1
    for other, fragment in INSTRUCTIONS.items():
        if other != expected:
            assert fragment not in prompt
    assert "The quick brown fox jumps over the lazy dog" in prompt


def test_prompt_subject_for_documents() -> None:
    prompt = build_summary_prompt("Quarterly report", "core", subject="content")

    assert prompt.startswith("Provide a concise summary of the following content only")


def test_summary_level_parse_is_case_insensitive() -> None:
    assert SummaryLevel.parse(" CORE ") is SummaryLevel.CORE
    assert SummaryLevel.parse("") is SummaryLevel.DETAILED


def _openai_response(content) -> MagicMock:
    mock_response = MagicMock()
    mock_response.json.return_value = {"choices": [{"message": {"content": content}}]}
    mock_response.raise_for_status.return_value = None
    return mock_response


@pytest.mark.asyncio
async def test_openai_summarizer_posts_single_turn_prompt(monkeypatch: pytest.MonkeyPatch) -> None:
    captured_payload = {}

    def fake_post(url: str, headers: dict, json: dict, timeout: int) -> MagicMock:  # type: ignore[override]
        captured_payload["url"] = url
        captured_payload["headers"] = headers
        captured_payload["json"] = json
        captured_payload["timeout"] = timeout
        return _openai_response("- point A\n- point B")

    monkeypatch.setattr("video_transcript_summary.summarizer.requests.post", fake_post)

    summarizer = OpenAICompatibleSummarizer(api_token="token", base_url="https://llm.example.com/v1/")
    result = await summarizer.summarize("text to summarize", "detailed")

    assert result.text == "- point A\n- point B"
    assert result.files == []
    assert captured_payload["url"] == "https://llm.example.com/v1/chat/completions"
    assert captured_payload["headers"]["Authorization"] == "Bearer token"
    messages = captured_payload["json"]["messages"]
    assert len(messages) == 1
    assert messages[0]["role"] == "user"
    assert "bullet points" in messages[0]["content"]


@pytest.mark.asyncio
async def test_openai_summarizer_rejects_non_text_content(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "video_transcript_summary.summarizer.requests.post",
        lambda *args, **kwargs: _openai_response({"summary": "hello"}),
    )

    summarizer = OpenAICompatibleSummarizer(api_token="token")
    with pytest.raises(SummarizationError, match="content is not text"):
        await summarizer.summarize("another text")


@pytest.mark.asyncio
async def test_openai_summarizer_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(*_args, **_kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr("video_transcript_summary.summarizer.requests.post", fail)

    summarizer = OpenAICompatibleSummarizer(api_token="token")
    with pytest.raises(SummarizationError):
        await summarizer.summarize("text")


class FakeChatSession:
    def __init__(self, response) -> None:
        self.response = response
        self.messages: list[str] = []

    def send_message(self, prompt: str):
        self.messages.append(prompt)
        return self.response


class FakeGeminiModel:
    def __init__(self, response) -> None:
        self.response = response
        self.sessions: list[FakeChatSession] = []
        self.histories: list[list] = []

    def start_chat(self, *, history: list):
        self.histories.append(history)
        session = FakeChatSession(self.response)
        self.sessions.append(session)
        return session


def _gemini_response(text: str, parts: list | None = None):
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts or [SimpleNamespace(text=text, inline_data=None)]))
    return SimpleNamespace(text=text, candidates=[candidate])


@pytest.mark.asyncio
async def test_gemini_summarizer_uses_fresh_session_per_call(tmp_path: Path) -> None:
    model = FakeGeminiModel(_gemini_response("Short summary."))
    summarizer = GeminiSummarizer(api_key="key", output_dir=tmp_path, client=model)

    first = await summarizer.summarize("first transcript", "core")
    second = await summarizer.summarize("second transcript", "concise")

    assert first.text == "Short summary."
    assert second.text == "Short summary."
    assert model.histories == [[], []]
    assert len(model.sessions) == 2
    assert "very short and concise" in model.sessions[0].messages[0]
    assert "detailed summary" in model.sessions[1].messages[0]


@pytest.mark.asyncio
async def test_gemini_summarizer_persists_inline_binary_parts(tmp_path: Path) -> None:
    parts = [
        SimpleNamespace(text="See chart", inline_data=None),
        SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/png", data=b"\x89PNG-bytes")),
        SimpleNamespace(
            inline_data=SimpleNamespace(mime_type="text/plain", data=base64.b64encode(b"notes").decode())
        ),
    ]
    model = FakeGeminiModel(_gemini_response("See chart", parts))
    summarizer = GeminiSummarizer(api_key="key", output_dir=tmp_path / "out", client=model)

    result = await summarizer.summarize("transcript")

    assert [item.filename for item in result.files] == ["output_0_1.png", "output_0_2.txt"]
    assert (tmp_path / "out" / "output_0_1.png").read_bytes() == b"\x89PNG-bytes"
    assert (tmp_path / "out" / "output_0_2.txt").read_bytes() == b"notes"
    assert result.files[0].path == str(tmp_path / "out" / "output_0_1.png")


@pytest.mark.asyncio
async def test_gemini_failure_surfaces_as_summarization_error(tmp_path: Path) -> None:
    class ExplodingModel:
        def start_chat(self, *, history: list):
            raise RuntimeError("quota exceeded")

    summarizer = GeminiSummarizer(api_key="key", output_dir=tmp_path, client=ExplodingModel())

    with pytest.raises(SummarizationError, match="quota exceeded"):
        await summarizer.summarize("text")


def test_create_summarizer_selects_backend(tmp_path: Path) -> None:
    gemini = create_summarizer(
        Settings(_env_file=None, assemblyai_api_key="a", gemini_api_key="g", uploads_dir=tmp_path)
    )
    openai = create_summarizer(
        Settings(
            _env_file=None,
            assemblyai_api_key="a",
            summarizer_backend="openai",
            openai_api_key="o",
            openai_model="gpt-test",
        )
    )

    assert isinstance(gemini, GeminiSummarizer)
    assert gemini.output_dir == tmp_path
    assert isinstance(openai, OpenAICompatibleSummarizer)
    assert openai.model == "gpt-test"


def test_create_summarizer_rejects_unknown_backend(settings: Settings) -> None:
    unchecked = settings.model_copy(update={"summarizer_backend": "claude"})

    with pytest.raises(ConfigurationError):
        create_summarizer(unchecked)
