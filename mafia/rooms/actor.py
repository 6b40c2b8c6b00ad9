"""Per-room single-writer actors.

Every mutating request for a room goes through that room's queue and is
handled by one worker task, so no two operations on the same room ever
interleave. Rooms do not block each other.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from mafia.errors.handler import (
    ConcurrencyError,
    ErrorHandler,
    GameError,
    StorageError,
)
from mafia.game.engine import PhaseEngine
from mafia.storage.store import GameStore
from mafia.types.actions import build_night_action
from mafia.types.events import BaseEvent, GameEvent
from mafia.types.game import GamePhase, Room, RoomSnapshot, Winner

logger = logging.getLogger(__name__)

PhaseMarker = Tuple[GamePhase, Optional[int]]


class OperationResult(BaseModel):
    """What a mutating room operation produced"""
    snapshot: RoomSnapshot
    events: List[GameEvent] = Field(default_factory=list)
    advanced: bool = Field(True, description="False when a stale advance collapsed into a no-op")


@dataclass
class RoomRequest:
    """A queued operation waiting for the room worker."""

    operation: str
    caller_id: str
    apply: Callable[[RoomSnapshot], Any]
    future: asyncio.Future
    observed: Optional[PhaseMarker] = None
    mutating: bool = True


def phase_marker(snapshot: RoomSnapshot) -> PhaseMarker:
    return snapshot.phase, snapshot.game.day_number if snapshot.game else None


def is_stale(observed: PhaseMarker, current: PhaseMarker) -> bool:
    """A marker without a day only pins the phase."""
    expected_phase, expected_day = observed
    if expected_day is None:
        return expected_phase != current[0]
    return observed != current


class RoomActor:
    """Serializes every operation on one room."""

    def __init__(
        self,
        room_id: str,
        store: GameStore,
        engine: Optional[PhaseEngine] = None,
        queue_size: int = 64,
        request_timeout: float = 5.0,
    ):
        """
        Initialize the actor.

        Args:
            room_id: Room this actor owns
            store: Snapshot store shared by all actors
            engine: Phase engine (a fresh one when omitted)
            queue_size: Pending requests allowed before rejecting new ones
            request_timeout: Seconds a caller waits for its turn and result
        """
        self.room_id = room_id
        self.store = store
        self.engine = engine or PhaseEngine()
        self.request_timeout = request_timeout
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start_game(self, host_id: str) -> OperationResult:
        return await self._submit(
            "start_game", host_id, lambda s: self.engine.start(s, host_id)
        )

    async def submit_night_action(self, actor_id: str, target_id: str, action_type: str) -> OperationResult:
        action = build_night_action(action_type, target_id)
        return await self._submit(
            "submit_night_action",
            actor_id,
            lambda s: self.engine.submit_night_action(s, actor_id, action),
        )

    async def submit_vote(self, voter_id: str, target_id: Optional[str]) -> OperationResult:
        return await self._submit(
            "submit_vote", voter_id, lambda s: self.engine.cast_vote(s, voter_id, target_id)
        )

    async def advance_phase(
        self,
        caller_id: str,
        force: bool = False,
        expected_phase: Optional[GamePhase] = None,
        expected_day: Optional[int] = None,
    ) -> OperationResult:
        """
        Advance the room's phase.

        The request remembers the phase it was issued against, either the one
        passed in or the one stored at enqueue time. If another advance moved
        the room on first, this one collapses: it returns the current state
        with ``advanced=False`` instead of resolving a second time.
        """
        if expected_phase is None:
            observed = phase_marker(self._load())
        else:
            observed = (expected_phase, expected_day)

        return await self._submit(
            "advance_phase",
            caller_id,
            lambda s: self.engine.advance(s, caller_id, force),
            observed=observed,
        )

    async def end_game(self, host_id: str, winner: Optional[Winner] = None) -> OperationResult:
        return await self._submit(
            "end_game", host_id, lambda s: self.engine.end_game(s, host_id, winner)
        )

    async def restart_game(self, host_id: str, force: bool = False) -> OperationResult:
        return await self._submit(
            "restart_game", host_id, lambda s: self.engine.restart(s, host_id, force)
        )

    async def remove_player(self, host_id: str, player_id: str) -> OperationResult:
        return await self._submit(
            "remove_player",
            host_id,
            lambda s: self.engine.remove_player(s, host_id, player_id),
        )

    async def view(self, player_id: str) -> Dict[str, Any]:
        """The room as one player is allowed to see it."""
        return await self._submit(
            "view",
            player_id,
            lambda s: self.engine.visible_state(s, player_id),
            mutating=False,
        )

    # ------------------------------------------------------------------
    # Queue and worker
    # ------------------------------------------------------------------

    async def _submit(
        self,
        operation: str,
        caller_id: str,
        apply: Callable[[RoomSnapshot], Any],
        observed: Optional[PhaseMarker] = None,
        mutating: bool = True,
    ) -> Any:
        if self._closed:
            raise ConcurrencyError(f"Room {self.room_id} is shutting down", reason="closed")
        self._ensure_worker()

        future = asyncio.get_running_loop().create_future()
        request = RoomRequest(
            operation=operation,
            caller_id=caller_id,
            apply=apply,
            future=future,
            observed=observed,
            mutating=mutating,
        )

        try:
            self.queue.put_nowait(request)
        except asyncio.QueueFull:
            error = ConcurrencyError("Too many pending requests for this room", reason="queue_full")
            ErrorHandler.log(error, room_id=self.room_id, operation=operation, actor_id=caller_id)
            raise error

        try:
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            # wait_for cancelled the future; the worker skips it
            error = ConcurrencyError("Timed out waiting for the room", reason="timeout")
            ErrorHandler.log(error, room_id=self.room_id, operation=operation, actor_id=caller_id)
            raise error

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def _run(self) -> None:
        """Worker loop: one request at a time, in arrival order."""
        try:
            while True:
                request = await self.queue.get()
                try:
                    if request.future.done():
                        logger.debug(f"Room {self.room_id}: skipping abandoned {request.operation}")
                        continue
                    try:
                        result = self._process(request)
                    except Exception as e:
                        if not isinstance(e, GameError):
                            logger.exception(f"Room {self.room_id}: {request.operation} failed")
                        request.future.set_exception(e)
                    else:
                        request.future.set_result(result)
                finally:
                    self.queue.task_done()
        except asyncio.CancelledError:
            logger.info(f"Worker for room {self.room_id} stopped")
            raise

    def _process(self, request: RoomRequest) -> Any:
        """Run one request against a fresh snapshot and commit the result."""
        snapshot = self._load()
        phase, day_number = phase_marker(snapshot)

        if request.observed is not None and is_stale(request.observed, (phase, day_number)):
            logger.info(
                f"Room {self.room_id}: {request.operation} from {request.caller_id} collapsed; "
                f"room already moved to {phase.value} day {day_number}"
            )
            return OperationResult(snapshot=snapshot, advanced=False)

        working = snapshot.model_copy(deep=True)
        try:
            outcome = request.apply(working)
            if not request.mutating:
                return outcome
            events: List[BaseEvent] = outcome
            self._commit(working, events)
        except GameError as e:
            ErrorHandler.log(
                e,
                room_id=self.room_id,
                operation=request.operation,
                phase=phase.value,
                day_number=day_number,
                actor_id=request.caller_id,
            )
            raise

        return OperationResult(snapshot=working, events=events)

    def _load(self) -> RoomSnapshot:
        try:
            return self.store.load(self.room_id)
        except GameError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load room {self.room_id}: {e}", reason="load_failed") from e

    def _commit(self, snapshot: RoomSnapshot, events: List[BaseEvent]) -> None:
        try:
            self.store.commit(snapshot, events)
        except GameError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to commit room {self.room_id}: {e}", reason="commit_failed") from e

    async def close(self) -> None:
        """Stop the worker and fail whatever is still queued."""
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        while not self.queue.empty():
            request = self.queue.get_nowait()
            if not request.future.done():
                request.future.set_exception(
                    ConcurrencyError(f"Room {self.room_id} is shutting down", reason="closed")
                )
            self.queue.task_done()


class RoomRegistry:
    """Creates one actor per room on first use."""

    def __init__(
        self,
        store: GameStore,
        engine: Optional[PhaseEngine] = None,
        queue_size: int = 64,
        request_timeout: float = 5.0,
    ):
        self.store = store
        self.engine = engine or PhaseEngine()
        self.queue_size = queue_size
        self.request_timeout = request_timeout
        self.actors: Dict[str, RoomActor] = {}

    def create_room(self, room: Room) -> RoomSnapshot:
        return self.store.create_room(room)

    def get(self, room_id: str) -> RoomActor:
        """Get the room's actor, creating it if the room exists."""
        actor = self.actors.get(room_id)
        if actor is None:
            self.store.load(room_id)
            actor = RoomActor(
                room_id,
                self.store,
                engine=self.engine,
                queue_size=self.queue_size,
                request_timeout=self.request_timeout,
            )
            self.actors[room_id] = actor
            logger.debug(f"Created actor for room {room_id}")
        return actor

    async def discard(self, room_id: str) -> None:
        """Stop and forget the room's actor, if one was created."""
        actor = self.actors.pop(room_id, None)
        if actor is not None:
            await actor.close()
            logger.debug(f"Discarded actor for room {room_id}")

    async def delete_room(self, room_id: str) -> None:
        """Delete the room from the store and release its actor."""
        self.store.delete(room_id)
        await self.discard(room_id)

    async def close_all(self) -> None:
        for actor in list(self.actors.values()):
            await actor.close()
        self.actors.clear()
