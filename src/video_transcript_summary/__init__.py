"""Video and document transcription and summarization service."""

from .asr_client import AssemblyAIClient, PollOutcome
from .audio import download_audio, transcode_audio
from .config import Settings, load_settings
from .pipeline import SummaryPipeline
from .subtitles import extract_subtitles
from .summarizer import (
    GeminiSummarizer,
    OpenAICompatibleSummarizer,
    Summarizer,
    SummaryLevel,
    SummaryResult,
    build_summary_prompt,
    create_summarizer,
)

__all__ = [
    "AssemblyAIClient",
    "PollOutcome",
    "GeminiSummarizer",
    "OpenAICompatibleSummarizer",
    "Summarizer",
    "SummaryLevel",
    "SummaryResult",
    "SummaryPipeline",
    "Settings",
    "build_summary_prompt",
    "create_summarizer",
    "load_settings",
    "download_audio",
    "extract_subtitles",
    "transcode_audio",
]
