"""Memory-matching game engine.

A round is seeded from stored translations: up to six (input, output) pairs
are drawn, each pair becomes two cards, and the player flips cards two at a
time looking for the card pairs that belong together.

    records --select_pairs--> pairs --build_board--> cards --GameController--> Round

All transitions of a Round go through GameController. Timers (initial reveal,
auto-hide of a lone first card, mismatch resolution) are cancellable handles
stored on the Round they belong to, so replacing a round always leaves the
old round's timers dead.
"""
import asyncio
import os
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from log import get_logger

logger = get_logger("wordmatch.game")

import httpx

import history
from models import TranslationRecord, DEFAULT_HISTORY_LIMIT

# --- Config ---
REVEAL_DELAY = float(os.environ.get("WORDMATCH_REVEAL_DELAY", "4.0"))
AUTO_HIDE_DELAY = float(os.environ.get("WORDMATCH_AUTO_HIDE_DELAY", "2.0"))
MISMATCH_DELAY = float(os.environ.get("WORDMATCH_MISMATCH_DELAY", "0.5"))
MIN_PAIRS = 3
MAX_PAIRS = 6

NOT_ENOUGH_WORDS = "Not enough words to play. Please save more words."
WIN_MESSAGE = "You matched every pair!"


class InsufficientData(Exception):
    """Fewer distinct stored phrases than a round needs."""

    def __init__(self, unique_count: int):
        super().__init__(f"need at least {MIN_PAIRS} distinct phrases, found {unique_count}")
        self.unique_count = unique_count


class CardState(str, Enum):
    INITIAL = "initial"
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"


class Phase(str, Enum):
    INITIAL = "initial"      # cards shown face up, not clickable yet
    PLAYING = "playing"
    WON = "won"
    DISABLED = "disabled"    # not enough words


@dataclass(frozen=True)
class Pair:
    pair_id: int
    input: str
    output: str


@dataclass
class Card:
    card_id: str
    side: str
    pair_id: int
    content: str
    state: CardState = CardState.INITIAL

    @property
    def face(self) -> str:
        """What the player currently sees on the card."""
        return "" if self.state is CardState.HIDDEN else self.content

    def to_dict(self) -> dict:
        return {"card_id": self.card_id, "state": self.state.value, "face": self.face}


@dataclass
class Round:
    cards: List[Card] = field(default_factory=list)
    matched_count: int = 0
    first: Optional[Card] = None
    second: Optional[Card] = None
    locked: bool = False
    phase: Phase = Phase.INITIAL
    message: str = ""
    timers: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.cards)

    def card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.cards if c.card_id == card_id), None)

    def revealed(self) -> List[Card]:
        return [c for c in self.cards if c.state is CardState.REVEALED]

    def cancel_timer(self, name: str):
        handle = self.timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def cancel_timers(self):
        for name in list(self.timers):
            self.cancel_timer(name)

    def clear_selection(self):
        self.first = None
        self.second = None
        self.locked = False


# --- Pair selection & board ---

def _field(record, name: str):
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


def select_pairs(records: Iterable, rng=None) -> List[Pair]:
    """Draw 3-6 random pairs with distinct inputs from the stored records.

    Records are deduplicated by input text (first occurrence wins). Raises
    InsufficientData when fewer than three distinct inputs are available.
    """
    rng = rng or random
    unique: Dict[str, str] = {}
    for record in records:
        text = _field(record, "input")
        if text not in unique:
            unique[text] = _field(record, "output")

    if len(unique) < MIN_PAIRS:
        raise InsufficientData(len(unique))

    k = min(MAX_PAIRS, max(MIN_PAIRS, len(unique)))
    chosen = rng.sample(list(unique.items()), k)
    return [Pair(pair_id=i, input=inp, output=out) for i, (inp, out) in enumerate(chosen)]


def build_board(pairs: List[Pair], rng=None) -> List[Card]:
    """Two cards per pair (input side and output side), shuffled into display order."""
    rng = rng or random
    cards: List[Card] = []
    for i, pair in enumerate(pairs):
        cards.append(Card(card_id=f"input-{i}", side="input", pair_id=i, content=pair.input))
        cards.append(Card(card_id=f"output-{i}", side="output", pair_id=i, content=pair.output))
    rng.shuffle(cards)
    return cards


# --- History snapshots ---

async def fetch_history_snapshot(base_url: str, limit: int = DEFAULT_HISTORY_LIMIT,
                                 transport: httpx.AsyncBaseTransport = None) -> List[TranslationRecord]:
    """Read recent translations from a running WordMatch server.

    Client-side entry point for seeding a GameController from a remote
    server's GET /api/history. The server itself seeds its rounds with
    local_history_snapshot. Never raises: an unreachable server or a bad payload yields [].
    """
    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=10, transport=transport) as client:
            resp = await client.get("/api/history", params={"limit": limit})
        resp.raise_for_status()
        return [TranslationRecord(**item) for item in resp.json()]
    except (httpx.HTTPError, ValueError, TypeError) as e:
        logger.warning("History snapshot unavailable", extra={"component": "game", "detail": str(e)})
        return []


async def local_history_snapshot(limit: int = DEFAULT_HISTORY_LIMIT) -> List[dict]:
    """Read recent translations straight from the local history store."""
    try:
        return history.load_history(limit)
    except history.HistoryError as e:
        logger.warning("History snapshot unavailable", extra={"component": "game", "detail": str(e)})
        return []


# --- Round state machine ---

class LoopScheduler:
    """Runs timer callbacks on the current asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class GameController:
    """Owns one Round at a time and performs every transition on it.

    fetch_records is an async callable returning the record snapshot used to
    seed a round. Any scheduler exposing call_later(delay, callback) returning
    a handle with cancel() can drive the timers.
    """

    def __init__(
        self,
        fetch_records: Callable[[], Awaitable[Iterable]],
        scheduler=None,
        reveal_delay: float = REVEAL_DELAY,
        auto_hide_delay: float = AUTO_HIDE_DELAY,
        mismatch_delay: float = MISMATCH_DELAY,
        on_win: Optional[Callable[[Round], None]] = None,
        rng=None,
    ):
        self._fetch_records = fetch_records
        self.scheduler = scheduler or LoopScheduler()
        self.reveal_delay = reveal_delay
        self.auto_hide_delay = auto_hide_delay
        self.mismatch_delay = mismatch_delay
        self.on_win = on_win
        self._rng = rng or random
        self._generation = 0
        self.round = Round()

    async def start(self) -> Round:
        """Discard the current round and build a fresh one from a new snapshot."""
        self._generation += 1
        generation = self._generation
        self._discard_round()

        records = await self._fetch_snapshot()
        if generation != self._generation:
            # A later start/reset (or close) superseded this one while fetching
            return self.round

        self._discard_round()
        self.round = self._new_round(records)
        return self.round

    async def reset(self) -> Round:
        logger.debug("Resetting round", extra={"component": "game"})
        return await self.start()

    def close(self):
        """Stop the game: no pending timer or fetch may touch it afterwards."""
        self._generation += 1
        self.round.cancel_timers()

    def select(self, card_id: str) -> bool:
        """Flip a card. Returns False when the click is ignored."""
        rnd = self.round
        if rnd.phase is not Phase.PLAYING or rnd.locked:
            return False
        card = rnd.card(card_id)
        if card is None or card is rnd.first or card.state is not CardState.HIDDEN:
            return False

        rnd.cancel_timer("auto_hide")
        card.state = CardState.REVEALED

        if rnd.first is None:
            rnd.first = card
            self._schedule(rnd, "auto_hide", self.auto_hide_delay, self._on_auto_hide)
            return True

        rnd.second = card
        rnd.locked = True
        if rnd.first.pair_id == card.pair_id:
            self._resolve_match(rnd)
        else:
            self._schedule(rnd, "mismatch", self.mismatch_delay, self._on_mismatch)
        return True

    def snapshot(self) -> dict:
        rnd = self.round
        return {
            "phase": rnd.phase.value,
            "locked": rnd.locked,
            "matched_count": rnd.matched_count,
            "total": rnd.total,
            "message": rnd.message,
            "cards": [c.to_dict() for c in rnd.cards],
        }

    # --- transitions ---

    async def _fetch_snapshot(self) -> List:
        try:
            return list(await self._fetch_records())
        except Exception:
            logger.exception("History snapshot failed", extra={"component": "game"})
            return []

    def _discard_round(self):
        self.round.cancel_timers()
        self.round = Round()

    def _new_round(self, records: List) -> Round:
        try:
            pairs = select_pairs(records, self._rng)
        except InsufficientData as e:
            logger.info("Not enough words for a round", extra={"component": "game", "count": e.unique_count})
            return Round(phase=Phase.DISABLED, message=NOT_ENOUGH_WORDS)

        rnd = Round(cards=build_board(pairs, self._rng))
        self._schedule(rnd, "reveal", self.reveal_delay, self._on_reveal)
        logger.debug("Round started", extra={"component": "game", "count": len(pairs)})
        return rnd

    def _schedule(self, rnd: Round, name: str, delay: float, callback: Callable[[Round], None]):
        def fire():
            # a replaced or cancelled handle is no longer in rnd.timers
            if rnd.timers.get(name) is not handle:
                return
            del rnd.timers[name]
            if rnd is not self.round:
                return
            callback(rnd)

        rnd.cancel_timer(name)
        handle = self.scheduler.call_later(delay, fire)
        rnd.timers[name] = handle

    def _on_reveal(self, rnd: Round):
        for card in rnd.cards:
            card.state = CardState.HIDDEN
        rnd.phase = Phase.PLAYING

    def _on_auto_hide(self, rnd: Round):
        if rnd.first is None or rnd.second is not None:
            return
        rnd.first.state = CardState.HIDDEN
        rnd.first = None

    def _on_mismatch(self, rnd: Round):
        for card in (rnd.first, rnd.second):
            if card is not None:
                card.state = CardState.HIDDEN
        rnd.clear_selection()

    def _resolve_match(self, rnd: Round):
        rnd.first.state = CardState.MATCHED
        rnd.second.state = CardState.MATCHED
        rnd.matched_count += 2
        rnd.clear_selection()
        if rnd.matched_count == rnd.total:
            rnd.phase = Phase.WON
            rnd.message = WIN_MESSAGE
            logger.info("Round won", extra={"component": "game", "count": rnd.total // 2})
            if self.on_win is not None:
                self.on_win(rnd)
