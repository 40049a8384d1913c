# backend/app/pipeline/batch.py

"""
Batch runner for the primitive endpoints.

Each upload goes through:

    validate -> normalize -> primitive -> (monochrome) -> svgo

All uploads run concurrently. Results come back in upload order, and the
first failing upload fails the whole batch: callers never see partial
results.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import List, Optional, Sequence

from app.config import Settings, get_settings
from app.errors import PipelineError
from app.models import ColorMode, ProcessedResult, UploadedItem
from app.pipeline.monochrome import reduce_to_monochrome
from app.pipeline.normalize import normalize_to_png
from app.pipeline.optimize import optimize_svg
from app.pipeline.primitive import vectorize_png_to_svg
from app.pipeline.validate import validate_file_type

logger = logging.getLogger(__name__)


async def process_file(
    item: UploadedItem,
    color_mode: ColorMode,
    settings: Settings,
) -> ProcessedResult:
    item = validate_file_type(item)
    raster = await asyncio.to_thread(normalize_to_png, item)
    svg = await asyncio.to_thread(vectorize_png_to_svg, raster, settings)

    if color_mode is ColorMode.BLACK_AND_WHITE:
        svg = reduce_to_monochrome(svg)

    svg = await asyncio.to_thread(optimize_svg, svg, settings)
    return ProcessedResult(
        svg=svg,
        field_name=item.field_name,
        original_name=item.original_name,
        mime_type=item.mime_type,
    )


async def _run_one(
    index: int,
    item: UploadedItem,
    color_mode: ColorMode,
    settings: Settings,
    semaphore: Optional[asyncio.Semaphore],
) -> ProcessedResult:
    async with AsyncExitStack() as stack:
        if semaphore is not None:
            await stack.enter_async_context(semaphore)
        logger.info("[%d] %s (%s) started", index, item.original_name, item.mime_type)
        try:
            result = await process_file(item, color_mode, settings)
        except PipelineError as e:
            logger.warning("[%d] %s failed: %s: %s", index, item.original_name, e.code, e)
            raise
        logger.info("[%d] %s done (%d bytes)", index, item.original_name, len(result.svg))
        return result


async def process_files(
    items: Sequence[UploadedItem],
    color_mode: ColorMode,
    settings: Optional[Settings] = None,
) -> List[ProcessedResult]:
    """
    Run every item through the pipeline concurrently.

    Returns one ProcessedResult per item, in input order. Raises the first
    failure encountered.
    """
    settings = settings or get_settings()
    semaphore = asyncio.Semaphore(settings.max_concurrency) if settings.max_concurrency > 0 else None

    logger.info("processing %d file(s), color mode %s", len(items), color_mode.value)
    results = await asyncio.gather(
        *(_run_one(i, item, color_mode, settings, semaphore) for i, item in enumerate(items))
    )
    return list(results)
