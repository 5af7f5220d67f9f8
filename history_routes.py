"""Translation and translation-history API routes."""
from log import get_logger

logger = get_logger("wordmatch.history_routes")

from fastapi import APIRouter, Depends, HTTPException, Query

from models import (
    SUPPORTED_LANGUAGES, MAX_INPUT_LEN, DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT,
    TranslateRequest, StoreRequest,
)
from ratelimit import require_translate_quota
import history
import translator

router = APIRouter()


@router.post("/api/translate", tags=["Translation"], summary="Translate text with the external provider")
async def translate(req: TranslateRequest, _quota=Depends(require_translate_quota)):
    text = req.input.strip()
    if not text:
        raise HTTPException(400, "Input text cannot be empty")
    if len(text) > MAX_INPUT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_INPUT_LEN} characters)")
    if req.lang_in not in SUPPORTED_LANGUAGES or req.lang_out not in SUPPORTED_LANGUAGES:
        raise HTTPException(400, "Unsupported language")

    try:
        output = await translator.translate_text(text, req.lang_in, req.lang_out)
    except translator.TranslationInputError as e:
        raise HTTPException(400, str(e))
    except translator.TranslationError as e:
        logger.error("Translation failed", extra={"endpoint": "/api/translate", "detail": str(e)})
        raise HTTPException(500, "An error occurred while translating text")

    return {"input": text, "output": output, "lang_in": req.lang_in, "lang_out": req.lang_out}


@router.post("/api/store", tags=["History"], summary="Save a translation to history")
async def store_translation(req: StoreRequest):
    fields = (req.input, req.output, req.lang_in, req.lang_out)
    if not all(f and f.strip() for f in fields):
        raise HTTPException(400, "Translation input required")

    try:
        new_id = history.save_translation(req.input, req.output, req.lang_in, req.lang_out)
    except history.HistoryError:
        logger.exception("Unable to store translation", extra={"endpoint": "/api/store"})
        raise HTTPException(500, "Unable to store translation")
    return {"ok": True, "stored": new_id is not None, "id": new_id}


@router.get("/api/history", tags=["History"], summary="Most recent translations, newest first")
async def read_history(limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT)):
    try:
        return history.load_history(limit)
    except history.HistoryError:
        logger.exception("History unavailable", extra={"endpoint": "/api/history"})
        raise HTTPException(404, "History unavailable")


@router.delete("/api/history", tags=["History"], summary="Clear all history")
async def clear_history():
    try:
        deleted = history.clear_history()
    except history.HistoryError:
        logger.exception("Error deleting all history", extra={"endpoint": "/api/history"})
        raise HTTPException(404, "Error deleting all history")
    return {"ok": True, "deleted": deleted}


@router.delete("/api/history/{record_id}", tags=["History"], summary="Delete one translation")
async def delete_history_entry(record_id: int):
    try:
        removed = history.delete_translation(record_id)
    except history.HistoryError:
        logger.exception("Error deleting translation", extra={"endpoint": "/api/history/{id}"})
        raise HTTPException(500, "Error deleting translation")
    if not removed:
        raise HTTPException(404, "Translation not found")
    return {"ok": True}


@router.get("/api/search", tags=["History"], summary="Search stored translations by input text")
async def search(q: str = ""):
    if not q.strip():
        raise HTTPException(400, "Search text is required.")
    try:
        return history.search_translations(q)
    except history.HistoryError as e:
        raise HTTPException(500, str(e))


@router.get("/api/translation", tags=["History"], summary="Get a stored translation by exact input")
async def get_translation(input: str = ""):
    if not input:
        raise HTTPException(400, "Query parameter 'input' is required.")
    try:
        record = history.get_translation(input)
    except history.HistoryError as e:
        raise HTTPException(500, str(e))
    if record is None:
        raise HTTPException(404, "No matching translation found.")
    return record
