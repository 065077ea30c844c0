"""Table and server settings, read once from the environment."""

import os
import secrets
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool) -> bool:
    """Only a case-insensitive "true" turns a flag on."""
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _parse_cors_origins() -> list[str]:
    """Comma-separated CORS_ORIGINS, blanks dropped."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


@dataclass(frozen=True)
class GameConfig:
    """
    Rules every new table is seated with.

    MAX_PLAYERS, LOW_WATER_MARK, DEALER_STANDS_ON and EVENT_HISTORY_LIMIT
    override the defaults.
    """

    max_players: int = field(default_factory=lambda: _env_int("MAX_PLAYERS", 4))
    low_water_mark: int = field(default_factory=lambda: _env_int("LOW_WATER_MARK", 20))
    dealer_stands_on: int = field(default_factory=lambda: _env_int("DEALER_STANDS_ON", 17))
    event_history_limit: int = field(
        default_factory=lambda: _env_int("EVENT_HISTORY_LIMIT", 500)
    )

    def __post_init__(self) -> None:
        if self.max_players < 1:
            raise ValueError("A table needs at least one seat")
        if not 0 <= self.low_water_mark <= 52:
            raise ValueError("The low-water mark must lie within one deck")
        if not 2 <= self.dealer_stands_on <= 21:
            raise ValueError("The dealer must stand somewhere between 2 and 21")
        if self.event_history_limit < 1:
            raise ValueError("The event history must keep at least one event")


@dataclass(frozen=True)
class CORSConfig:
    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client limit applied by slowapi."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", True))
    requests_per_minute: int = field(default_factory=lambda: _env_int("RATE_LIMIT_RPM", 60))


@dataclass(frozen=True)
class SecurityConfig:
    """Key that signs session tokens; a random one per process unless SECRET_KEY is set."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    datefmt: str = "%H:%M:%S"


@dataclass(frozen=True)
class AppConfig:
    """Everything the API process needs."""

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", False))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))
    # Idle seconds before a table is dropped
    session_ttl: int = field(default_factory=lambda: _env_int("SESSION_TTL", 3600))

    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


config = AppConfig()
