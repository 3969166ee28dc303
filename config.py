"""Application configuration, read from the environment (and a .env file if present)."""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    port: int
    allowed_origins: List[str]
    max_players: int
    room_idle_ttl_seconds: int
    database_url: Optional[str]
    database_name: str
    shuffle_seed: Optional[int]
    log_level: str


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


@lru_cache
def get_config() -> Config:
    load_dotenv()
    seed = os.getenv("SHUFFLE_SEED")
    return Config(
        port=_int_env("PORT", 8000),
        allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        max_players=_int_env("MAX_PLAYERS", 10),
        room_idle_ttl_seconds=_int_env("ROOM_IDLE_TTL_SECONDS", 3600),
        database_url=os.getenv("DATABASE_URL") or None,
        database_name=os.getenv("DATABASE_NAME", "uno"),
        shuffle_seed=int(seed) if seed and seed.lstrip("-").isdigit() else None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
