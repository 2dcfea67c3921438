"""Application configuration.

Settings come from ``CHESSCORE_*`` environment variables or a
``.env.chesscore`` file next to the working directory.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHESSCORE_", env_file=".env.chesscore", env_file_encoding="utf-8",
    )

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Seed for the move selector; unset means a fresh random stream
    ai_seed: Optional[int] = None
