import argparse
import asyncio
import json
import shutil
import sys
from pathlib import Path
from urllib.parse import urlparse

from video_transcript_summary import SummaryPipeline, load_settings
from video_transcript_summary.audio import artifact_path
from video_transcript_summary.errors import ConfigurationError, PipelineError
from video_transcript_summary.logging_setup import setup_logging


def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(description="Transcribe and summarize a video URL or a local media file.")
	parser.add_argument("video", help="Path to a local video/audio file or a video URL")
	parser.add_argument(
		"--level",
		choices=("core", "concise", "detailed"),
		default="detailed",
		help="Summary detail level",
	)
	parser.add_argument(
		"--source",
		choices=("audio", "subtitles", "auto"),
		default=None,
		help="Where the transcript of a URL comes from (defaults to TRANSCRIPT_SOURCE)",
	)
	parser.add_argument(
		"--summary-only",
		dest="summary_only",
		action="store_true",
		help="Print only the summary text instead of the full result payload",
	)
	return parser.parse_args()


def is_url(value: str) -> bool:
	parsed = urlparse(value)
	return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


async def run(pipeline: SummaryPipeline, video_input: str, level: str, source: str | None) -> dict:
	if is_url(video_input):
		return await pipeline.summarize_youtube(video_input, level, source=source)

	video_path = Path(video_input)
	if not video_path.exists():
		raise FileNotFoundError(f"Video file does not exist: {video_path}")

	# the pipeline deletes what it transcribes, so hand it a copy
	working_copy = artifact_path(pipeline.uploads_dir, video_path.suffix or ".bin")
	shutil.copyfile(video_path, working_copy)
	transcript = (await pipeline.transcribe_video(working_copy))["transcript"]
	summary = await pipeline.summarize_text(transcript, level)
	return {"transcript": transcript, **summary}


def main() -> None:
	args = parse_args()

	try:
		settings = load_settings()
		setup_logging(settings)
	except ConfigurationError as exc:
		print(f"Invalid configuration: {exc}", file=sys.stderr)
		sys.exit(1)

	pipeline = SummaryPipeline(settings)
	try:
		result = asyncio.run(run(pipeline, args.video, args.level, args.source))
	except (PipelineError, FileNotFoundError) as exc:
		print(f"Pipeline failed: {exc}", file=sys.stderr)
		sys.exit(1)

	if args.summary_only:
		print(result.get("summary", ""))
	else:
		print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
	main()
