"""HTTP surface for the transcript and summary pipeline."""

from __future__ import annotations

import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .audio import artifact_path, remove_artifacts
from .config import Settings, load_settings
from .documents import detect_media_type
from .errors import ConfigurationError, PipelineError
from .logging_setup import setup_logging
from .pipeline import SummaryPipeline

logger = logging.getLogger(__name__)


class VideoUrlRequest(BaseModel):
    videoUrl: Optional[str] = None
    level: Optional[str] = None
    source: Optional[str] = None


class TranscriptRequest(BaseModel):
    transcript: Optional[str] = None
    level: Optional[str] = None


async def _save_upload(upload: UploadFile, directory: Path, chunk_size: int = 1024 * 1024) -> Path:
    media_type = detect_media_type(upload.filename, upload.content_type)
    extension = Path(upload.filename or "").suffix or mimetypes.guess_extension(media_type) or ".bin"
    target = artifact_path(directory, extension)
    try:
        with target.open("wb") as handle:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                handle.write(chunk)
    except OSError:
        remove_artifacts(target)
        raise
    finally:
        await upload.close()
    return target


def create_app(settings: Settings, *, pipeline: Optional[SummaryPipeline] = None) -> FastAPI:
    app = FastAPI(title="Video Transcript Summary", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.pipeline = pipeline if pipeline is not None else SummaryPipeline(settings)
    uploads_dir = Path(settings.uploads_dir)

    @app.exception_handler(PipelineError)
    async def _pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s crashed", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/transcribe")
    async def transcribe(body: VideoUrlRequest) -> dict:
        return await app.state.pipeline.transcribe_url(body.videoUrl)

    @app.post("/summarize-youtube")
    async def summarize_youtube(body: VideoUrlRequest) -> dict:
        return await app.state.pipeline.summarize_youtube(body.videoUrl, body.level, source=body.source)

    @app.post("/summarize")
    async def summarize(body: TranscriptRequest) -> dict:
        return await app.state.pipeline.summarize_text(body.transcript, body.level)

    @app.post("/upload")
    async def upload(
        file: Optional[UploadFile] = File(None),
        level: Optional[str] = Form(None),
    ) -> dict:
        if file is None:
            return await app.state.pipeline.summarize_document(None, "", level)
        media_type = detect_media_type(file.filename, file.content_type)
        saved = await _save_upload(file, uploads_dir)
        logger.info("Received upload %s (%s)", file.filename, media_type)
        return await app.state.pipeline.summarize_document(saved, media_type, level)

    @app.post("/transcribe-video")
    async def transcribe_video(video: Optional[UploadFile] = File(None)) -> dict:
        if video is None:
            return await app.state.pipeline.transcribe_video(None)
        saved = await _save_upload(video, uploads_dir)
        logger.info("Received video %s", video.filename)
        return await app.state.pipeline.transcribe_video(saved)

    return app


def main() -> None:
    try:
        settings = load_settings()
        setup_logging(settings)
        app = create_app(settings)
    except ConfigurationError as exc:
        logging.basicConfig()
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logger.info("Server running on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
