from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    redis_url: str  # redis://host:port/db, or memory:// for an in-process store
    host: str
    port: int
    debug: bool
    cors_origins: list[str] = []
    session_ttl_seconds: int = 24 * 60 * 60  # Renewed by every write to a session
    max_text_length: int = 1000  # Plaintext limit after sanitization
    code_allocation_attempts: int = 100  # Collisions tolerated before giving up on a new code
    serialize_mutations: bool = True  # Per-code lock around read-modify-write and broadcast
    outbox_max_events: int = 256  # Undelivered events a realtime client may hold before it is evicted
    ws_ping_interval: float = 20.0
    ws_ping_timeout: float = 20.0
    ws_max_size: int = 64 * 1024  # Largest realtime frame accepted, in bytes

    model_config = {
        "env_file": [".env"],
        "env_prefix": "CLIPBRIDGE_",
        "extra": "ignore",
    }
