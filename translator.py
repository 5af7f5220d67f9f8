"""Client for the MyMemory translation API."""
import os

from log import get_logger

logger = get_logger("wordmatch.translator")

import httpx

# --- Config ---
MYMEMORY_URL = os.environ.get("WORDMATCH_TRANSLATE_URL", "https://api.mymemory.translated.net/get")
TRANSLATE_TIMEOUT = float(os.environ.get("WORDMATCH_TRANSLATE_TIMEOUT", "10"))

# MyMemory answers HTTP 200 with this text when both languages are the same
DISTINCT_LANGUAGES_ERROR = "PLEASE SELECT TWO DISTINCT LANGUAGES"


class TranslationError(Exception):
    """The provider could not be reached or returned something unusable."""


class TranslationInputError(TranslationError):
    """The provider rejected the request itself (caller's fault)."""


async def translate_text(text: str, lang_in: str, lang_out: str, transport: httpx.AsyncBaseTransport = None) -> str:
    """Translate text from lang_in to lang_out and return the translated string."""
    params = {"q": text, "langpair": f"{lang_in}|{lang_out}"}
    try:
        async with httpx.AsyncClient(timeout=TRANSLATE_TIMEOUT, transport=transport) as client:
            resp = await client.get(MYMEMORY_URL, params=params)
    except httpx.HTTPError as e:
        logger.warning("Translation provider unreachable", extra={"component": "translator", "detail": str(e)})
        raise TranslationError(f"Translation provider unreachable: {e}") from e

    if resp.status_code != 200:
        logger.warning("Translation provider error", extra={
            "component": "translator", "status_code": resp.status_code,
        })
        raise TranslationError(f"Translation provider returned HTTP {resp.status_code}")

    try:
        translated = resp.json()["responseData"]["translatedText"]
    except (ValueError, KeyError, TypeError) as e:
        raise TranslationError("Malformed response from translation provider") from e
    if not isinstance(translated, str):
        raise TranslationError("Malformed response from translation provider")

    if translated == DISTINCT_LANGUAGES_ERROR:
        raise TranslationInputError(DISTINCT_LANGUAGES_ERROR)
    return translated


async def check_provider_connectivity(transport: httpx.AsyncBaseTransport = None) -> bool:
    try:
        async with httpx.AsyncClient(timeout=5, transport=transport) as client:
            resp = await client.get(MYMEMORY_URL, params={"q": "hello", "langpair": "en|es"})
            return resp.status_code == 200
    except Exception:
        logger.warning("Translation provider not reachable", extra={"component": "translator"})
        return False
