"""
leadqa/api/upload.py
=====================
API Upload Endpoint - LeadQA

Responsibility:
    - Expose POST /api/v1/validate-lead
    - Accept a single call recording via multipart/form-data
    - Reject missing, empty, or unsupported files
    - Run the pipeline in a worker thread under a caller-level timeout
    - Map pipeline failures to HTTP status codes

The file name matters: the caller phone number is read from it.
"""

import asyncio
import logging
import os

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadqa import config
from leadqa.nlp.lead_extractor import ExtractionError
from leadqa.pipeline import run_pipeline
from leadqa.stt.deepgram_client import TranscriptionError

logger = logging.getLogger("leadqa.api")

ALLOWED_EXTENSIONS: set[str] = {".wav", ".mp3", ".m4a", ".ogg", ".flac", ".webm"}


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LeadQA",
    description="Insurance call lead validation - audio upload endpoint.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/v1/validate-lead")
async def validate_lead(audio_file: UploadFile = File(...)):
    """
    Accept a call recording and return the reconciled validation result.

    Status codes:
        400 - no file name or unsupported extension
        422 - empty file
        502 - transcription or extraction service failure
        504 - pipeline exceeded PIPELINE_TIMEOUT_SEC
    """
    if audio_file is None or not audio_file.filename:
        raise HTTPException(status_code=400, detail="Audio file is required.")

    extension = os.path.splitext(audio_file.filename)[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{extension}'. Allowed: {sorted(ALLOWED_EXTENSIONS)}",
        )

    logger.info("Audio file received: %s", audio_file.filename)

    try:
        audio_bytes = await audio_file.read()
    except Exception:
        raise HTTPException(status_code=400, detail="Failed to read uploaded file.")

    if not audio_bytes:
        raise HTTPException(status_code=422, detail="Uploaded file is empty.")

    logger.info("File size: %.2f KB", len(audio_bytes) / 1024)

    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(
                run_pipeline,
                audio_bytes,
                audio_file.filename,
                audio_file.content_type,
            ),
            timeout=config.PIPELINE_TIMEOUT_SEC,
        )
    except asyncio.TimeoutError:
        logger.error("Pipeline timed out after %.0fs.", config.PIPELINE_TIMEOUT_SEC)
        raise HTTPException(status_code=504, detail="Lead validation timed out.")
    except TranscriptionError as exc:
        logger.error("Transcription failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Transcription failed: {exc}")
    except ExtractionError as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Extraction failed: {exc}")
    except Exception as exc:
        logger.error("Pipeline unexpected error: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Pipeline failed: {exc}")

    return JSONResponse(status_code=200, content=result)
