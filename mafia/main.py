"""Mafia room engine - HTTP server"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mafia.config import Settings, get_settings
from mafia.errors.handler import ErrorHandler, GameError
from mafia.game.state import StateManager
from mafia.rooms.actor import OperationResult, RoomRegistry
from mafia.storage.store import GameStore, InMemoryGameStore
from mafia.types.events import InvestigationCompleted, public_events
from mafia.types.game import GamePhase, Room, Winner

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class CallerRequest(BaseModel):
    caller_id: str = Field(..., min_length=1, description="Pre-authenticated player id")


class NightActionRequest(BaseModel):
    actor_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    action_type: str = Field(..., description="kill, protect or investigate")


class VoteRequest(BaseModel):
    voter_id: str = Field(..., min_length=1)
    target_id: Optional[str] = Field(None, description="None abstains")


class AdvanceRequest(CallerRequest):
    force: bool = False
    expected_phase: Optional[GamePhase] = None
    expected_day: Optional[int] = None


class EndGameRequest(CallerRequest):
    winner: Optional[Winner] = None


class RestartRequest(CallerRequest):
    force: bool = False


class RemovePlayerRequest(CallerRequest):
    player_id: str = Field(..., min_length=1)


def build_response(result: OperationResult, caller_id: str) -> Dict[str, Any]:
    """Project an operation result onto what the caller may see."""
    events = public_events(result.events) + [
        e for e in result.events
        if isinstance(e, InvestigationCompleted) and e.detective_id == caller_id
    ]
    return {
        "advanced": result.advanced,
        "events": [e.model_dump(mode="json") for e in events],
        "state": StateManager.get_visible_state(result.snapshot, caller_id),
    }


def create_app(app_settings: Optional[Settings] = None, store: Optional[GameStore] = None) -> FastAPI:
    """Build the HTTP app around a room registry."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.registry = RoomRegistry(
            store or InMemoryGameStore(log_dir=app_settings.log_dir),
            queue_size=app_settings.room_queue_size,
            request_timeout=app_settings.request_timeout,
        )
        logger.info("Mafia room engine starting up")
        yield
        await app.state.registry.close_all()
        logger.info("Mafia room engine shut down")

    app = FastAPI(
        title="Mafia Room Engine",
        version="0.1.0",
        description="Authoritative game state machine for Mafia rooms",
        lifespan=lifespan,
    )

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        return JSONResponse(status_code=exc.status_code, content=ErrorHandler.to_payload(exc))

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "rooms": len(app.state.registry.store.list_rooms())}

    @app.post("/rooms", status_code=201)
    async def create_room(room: Room):
        snapshot = app.state.registry.create_room(room)
        return {"room_id": snapshot.room_id, "status": snapshot.room.status.value}

    @app.delete("/rooms/{room_id}", status_code=204)
    async def delete_room(room_id: str):
        await app.state.registry.delete_room(room_id)

    @app.get("/rooms/{room_id}/view/{player_id}")
    async def view_room(room_id: str, player_id: str):
        return await app.state.registry.get(room_id).view(player_id)

    @app.post("/rooms/{room_id}/start")
    async def start_game(room_id: str, body: CallerRequest):
        result = await app.state.registry.get(room_id).start_game(body.caller_id)
        return build_response(result, body.caller_id)

    @app.post("/rooms/{room_id}/night-action")
    async def submit_night_action(room_id: str, body: NightActionRequest):
        result = await app.state.registry.get(room_id).submit_night_action(
            body.actor_id, body.target_id, body.action_type
        )
        return build_response(result, body.actor_id)

    @app.post("/rooms/{room_id}/vote")
    async def submit_vote(room_id: str, body: VoteRequest):
        result = await app.state.registry.get(room_id).submit_vote(body.voter_id, body.target_id)
        return build_response(result, body.voter_id)

    @app.post("/rooms/{room_id}/advance")
    async def advance_phase(room_id: str, body: AdvanceRequest):
        result = await app.state.registry.get(room_id).advance_phase(
            body.caller_id,
            force=body.force,
            expected_phase=body.expected_phase,
            expected_day=body.expected_day,
        )
        return build_response(result, body.caller_id)

    @app.post("/rooms/{room_id}/end")
    async def end_game(room_id: str, body: EndGameRequest):
        result = await app.state.registry.get(room_id).end_game(body.caller_id, body.winner)
        return build_response(result, body.caller_id)

    @app.post("/rooms/{room_id}/restart")
    async def restart_game(room_id: str, body: RestartRequest):
        result = await app.state.registry.get(room_id).restart_game(body.caller_id, force=body.force)
        return build_response(result, body.caller_id)

    @app.post("/rooms/{room_id}/remove-player")
    async def remove_player(room_id: str, body: RemovePlayerRequest):
        result = await app.state.registry.get(room_id).remove_player(body.caller_id, body.player_id)
        return build_response(result, body.caller_id)

    return app


app = create_app()


def start_server(host: Optional[str] = None, port: Optional[int] = None):
    """Start the HTTP server."""
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting Mafia room engine on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    start_server()
