# backend/app/main.py

import logging
from typing import List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.errors import PipelineError
from app.models import ColorMode, UploadedItem
from app.pipeline.batch import process_files

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Primitive Vectorizer API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"ok": True}


async def _read_uploads(request: Request) -> List[UploadedItem]:
    """
    Collect every file part of the multipart body, whatever its field name.
    Plain text fields are ignored.
    """
    form = await request.form()
    items = []
    for field_name, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        items.append(
            UploadedItem(
                content=await value.read(),
                mime_type=value.content_type or "",
                field_name=field_name,
                original_name=value.filename or "",
            )
        )
    return items


async def _run_batch(request: Request, color_mode: ColorMode) -> dict:
    try:
        items = await _read_uploads(request)
        processed = await process_files(items, color_mode)
    except PipelineError as e:
        # Typed pipeline failure: keep its status so clients can tell
        # "bad upload" from "tool broke".
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.code, "message": str(e)},
        )
    except StarletteHTTPException:
        raise
    except Exception as e:
        logger.exception("unexpected failure in %s batch", color_mode.value)
        raise HTTPException(status_code=500, detail=f"vectorization failed: {e}")

    return {
        "algorithm": "primitive",
        "colorMode": color_mode.value,
        "files": [p.to_dict() for p in processed],
    }


@app.post("/primitive/color")
async def color(request: Request):
    """
    Multipart upload, any number of image files under any field names.
    Returns { algorithm, colorMode: "color", files: [{svg, fieldName, originalName, mimeType}] }.
    """
    return await _run_batch(request, ColorMode.COLOR)


@app.post("/primitive/black-and-white")
async def black_and_white(request: Request):
    """Same as /primitive/color, with every SVG reduced to #000 / #FFF."""
    return await _run_batch(request, ColorMode.BLACK_AND_WHITE)


# For local dev (inside backend/ directory):
#   uvicorn app.main:app --reload --host 0.0.0.0 --port 8000
