"""Service settings read from the environment"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    """Runtime settings for the room service"""
    host: str = Field("0.0.0.0", description="Interface the HTTP server binds to")
    port: int = Field(8080, ge=1, le=65535)
    log_dir: str = Field("game_logs", description="Directory for per-room event logs")
    log_level: str = Field("INFO")
    room_queue_size: int = Field(64, ge=1, description="Pending requests allowed per room")
    request_timeout: float = Field(5.0, gt=0, description="Seconds a request waits for its room")

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            host=os.getenv("MAFIA_HOST", defaults.host),
            port=int(os.getenv("MAFIA_PORT", str(defaults.port))),
            log_dir=os.getenv("MAFIA_LOG_DIR", defaults.log_dir),
            log_level=os.getenv("MAFIA_LOG_LEVEL", defaults.log_level).upper(),
            room_queue_size=int(os.getenv("MAFIA_ROOM_QUEUE_SIZE", str(defaults.room_queue_size))),
            request_timeout=float(os.getenv("MAFIA_REQUEST_TIMEOUT", str(defaults.request_timeout))),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
