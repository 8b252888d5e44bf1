import os
from dataclasses import dataclass, field
from typing import FrozenSet
from dotenv import load_dotenv

load_dotenv(override=True)

def _parse_extensions(raw: str) -> FrozenSet[str]:
    return frozenset(e.strip().lower().lstrip(".") for e in raw.split(",") if e.strip())

@dataclass
class Settings:
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    BLOCKED_EXTENSIONS: FrozenSet[str] = field(
        default_factory=lambda: _parse_extensions(os.getenv("BLOCKED_EXTENSIONS", "exe,bat,php"))
    )
    METADATA_FILENAME: str = os.getenv("METADATA_FILENAME", "metadata.json")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))

settings = Settings()
