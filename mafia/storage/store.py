"""Room storage: an in-memory snapshot store with a JSONL event log per room."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from mafia.errors.handler import NotFoundError, PreconditionError
from mafia.types.events import BaseEvent
from mafia.types.game import Room, RoomSnapshot, utcnow

logger = logging.getLogger(__name__)


class GameStore(Protocol):
    """CRUD contract the room actors rely on.

    ``commit`` must replace the stored snapshot as a whole: either every
    change of the operation lands or none does.
    """

    def create_room(self, room: Room) -> RoomSnapshot: ...

    def load(self, room_id: str) -> RoomSnapshot: ...

    def commit(self, snapshot: RoomSnapshot, events: Sequence[BaseEvent]) -> None: ...

    def delete(self, room_id: str) -> None: ...

    def list_rooms(self) -> List[str]: ...


class InMemoryGameStore:
    """Keeps room snapshots in memory and appends committed events to disk."""

    def __init__(self, log_dir: Optional[str] = "game_logs"):
        """
        Initialize the store.

        Args:
            log_dir: Directory for per-room event logs, or None to keep
                everything in memory
        """
        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.rooms: Dict[str, RoomSnapshot] = {}

    def create_room(self, room: Room) -> RoomSnapshot:
        """Seed a lobby room; the roster comes from the membership service."""
        if room.id in self.rooms:
            raise PreconditionError(f"Room {room.id} already exists", reason="room_exists")

        snapshot = RoomSnapshot(room=room)
        self.rooms[room.id] = snapshot.model_copy(deep=True)

        self._write_room_event(room.id, {
            "event": "room_created",
            "timestamp": utcnow().isoformat(),
            "room_id": room.id,
            "host_id": room.host_id,
            "players": [p.id for p in room.players],
            "config": room.config.model_dump(mode="json"),
        })
        logger.info(f"Created room {room.id} with {len(room.players)} players")
        return snapshot

    def load(self, room_id: str) -> RoomSnapshot:
        """Get a private copy of the room snapshot."""
        snapshot = self.rooms.get(room_id)
        if snapshot is None:
            raise NotFoundError(f"Room {room_id} not found", reason="room_not_found")
        return snapshot.model_copy(deep=True)

    def commit(self, snapshot: RoomSnapshot, events: Sequence[BaseEvent]) -> None:
        """Replace the stored snapshot, then append the events to the room log."""
        if snapshot.room_id not in self.rooms:
            raise NotFoundError(f"Room {snapshot.room_id} not found", reason="room_not_found")

        self.rooms[snapshot.room_id] = snapshot.model_copy(deep=True)

        for event in events:
            self._write_room_event(snapshot.room_id, {
                "event": event.type,
                "timestamp": event.created_at.isoformat(),
                **event.model_dump(mode="json", exclude={"type", "created_at"}),
            })

    def delete(self, room_id: str) -> None:
        if self.rooms.pop(room_id, None) is None:
            raise NotFoundError(f"Room {room_id} not found", reason="room_not_found")
        logger.info(f"Deleted room {room_id}")

    def list_rooms(self) -> List[str]:
        """List all room ids held by the store."""
        return list(self.rooms.keys())

    def _write_room_event(self, room_id: str, event: Dict[str, Any]) -> None:
        """Write an event to the room's log file."""
        if self.log_dir is None:
            return

        log_file = self.log_dir / f"room_{room_id}.jsonl"
        try:
            with open(log_file, "a") as f:
                f.write(json.dumps(event) + "\n")
        except OSError as e:
            logger.error(f"Failed to write event to log file: {e}")

    def load_room_log(self, room_id: str) -> Optional[Dict[str, Any]]:
        """Load a room's event history from its log file."""
        if self.log_dir is None:
            return None

        log_file = self.log_dir / f"room_{room_id}.jsonl"
        if not log_file.exists():
            return None

        events = []
        try:
            with open(log_file, "r") as f:
                for line in f:
                    if line.strip():
                        events.append(json.loads(line))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read log file: {e}")
            return None

        return {"room_id": room_id, "events": events}
