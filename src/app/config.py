"""Configuration management using Pydantic settings."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LIFEGRID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "LIFEGRID"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Browser origins allowed to call the API (the dev client runs on :3000)
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Built client to serve at / (skipped when the directory is missing)
    static_dir: Optional[Path] = None

    # Board
    board_width: int = 512
    board_height: int = 512

    # Simulation
    simulation_enabled: bool = True   # False = board accepts draws but never ticks
    tick_interval_ms: int = 100

    # Observers
    max_observers: int = 500          # soft cap, enforced when a socket connects
    observer_queue_size: int = 256    # pending messages before a slow socket is dropped


settings = Settings()
