import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# config.py lives in app/, so .env sits one level up at the project root
ROOT_DIR = Path(__file__).resolve().parent.parent
env_path = ROOT_DIR / ".env"

load_dotenv(dotenv_path=env_path)

DEFAULT_PORT = 3000
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class Settings:
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    openai_api_key: Optional[str] = None
    environment: str = "production"
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_dir: Optional[str] = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def openai_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Read the process environment once. Blank values count as unset."""
        api_key = (os.getenv("OPENAI_API_KEY") or "").strip() or None
        environment = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "production"

        log_dir = os.getenv("LOG_DIR")
        if log_dir is None:
            log_dir = str(ROOT_DIR / "logs")

        return cls(
            port=int(os.getenv("PORT") or DEFAULT_PORT),
            host=os.getenv("HOST") or "0.0.0.0",
            openai_api_key=api_key,
            environment=environment.strip().lower(),
            request_timeout=float(os.getenv("OPENAI_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS),
            log_dir=log_dir or None,
        )
