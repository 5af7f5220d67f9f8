"""Pydantic schemas and constants for WordMatch."""
from typing import Optional
from pydantic import BaseModel

# --- Constants ---
# Language codes accepted by the MyMemory provider (ISO 639-1)
SUPPORTED_LANGUAGES = {
    "ar": "Arabic",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "he": "Hebrew",
    "hi": "Hindi",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "nl": "Dutch",
    "pl": "Polish",
    "pt": "Portuguese",
    "ru": "Russian",
    "sv": "Swedish",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "vi": "Vietnamese",
    "zh": "Chinese",
}

MAX_INPUT_LEN = 500
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500

# --- Pydantic Models ---

class TranslationRecord(BaseModel):
    id: Optional[int] = None
    input: str
    output: str
    lang_in: str
    lang_out: str


class TranslateRequest(BaseModel):
    input: str
    lang_in: str
    lang_out: str


class StoreRequest(BaseModel):
    # Blank fields are rejected with a 400 by the handler, not a 422
    input: Optional[str] = None
    output: Optional[str] = None
    lang_in: Optional[str] = None
    lang_out: Optional[str] = None


class SelectRequest(BaseModel):
    card_id: str
