"""Matching-game endpoints: one GameController per game id, kept in memory."""
import secrets
from collections import OrderedDict

from log import get_logger, bind

logger = get_logger("wordmatch.game_routes")

from fastapi import APIRouter, HTTPException

from models import SelectRequest, DEFAULT_HISTORY_LIMIT
from game import GameController, LoopScheduler, local_history_snapshot

router = APIRouter()

MAX_GAMES = 200
_games: OrderedDict = OrderedDict()  # game_id -> GameController


def make_scheduler():
    return LoopScheduler()


def get_active_games() -> int:
    return len(_games)


def _evict_old_games():
    while len(_games) > MAX_GAMES:
        game_id, controller = _games.popitem(last=False)
        controller.close()
        bind(logger, component="game", game_id=game_id).debug("Evicted game")


def _get_game(game_id: str) -> GameController:
    controller = _games.get(game_id)
    if controller is None:
        raise HTTPException(404, "Game not found")
    return controller


async def _round_snapshot():
    return await local_history_snapshot(DEFAULT_HISTORY_LIMIT)


@router.post("/api/game", tags=["Game"], summary="Start a new matching round")
async def create_game():
    game_id = secrets.token_hex(8)
    game_log = bind(logger, component="game", game_id=game_id)

    def _won(rnd):
        game_log.info("Game won", extra={"count": rnd.total // 2})

    controller = GameController(_round_snapshot, scheduler=make_scheduler(), on_win=_won)
    _games[game_id] = controller
    _evict_old_games()
    await controller.start()
    game_log.info("Game started", extra={"detail": controller.round.phase.value})
    return {"game_id": game_id, **controller.snapshot()}


@router.get("/api/game/{game_id}", tags=["Game"], summary="Current state of a round")
async def get_game(game_id: str):
    return _get_game(game_id).snapshot()


@router.post("/api/game/{game_id}/select", tags=["Game"], summary="Flip a card")
async def select_card(game_id: str, req: SelectRequest):
    controller = _get_game(game_id)
    accepted = controller.select(req.card_id)
    return {"accepted": accepted, **controller.snapshot()}


@router.post("/api/game/{game_id}/reset", tags=["Game"], summary="Deal a new round")
async def reset_game(game_id: str):
    controller = _get_game(game_id)
    await controller.reset()
    return controller.snapshot()


@router.delete("/api/game/{game_id}", tags=["Game"], summary="Discard a game")
async def delete_game(game_id: str):
    controller = _games.pop(game_id, None)
    if controller is None:
        raise HTTPException(404, "Game not found")
    controller.close()
    bind(logger, component="game", game_id=game_id).info("Game discarded")
    return {"ok": True}
