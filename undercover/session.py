"""
Durable client identity, shared by every client started from the same home
"""
import os
import uuid
from pathlib import Path
from typing import Optional


def default_session_path() -> Path:
    override = os.environ.get("UNDERCOVER_SESSION_FILE")
    if override:
        return Path(override)
    return Path.home() / ".undercover" / "session"


def load_session_id(path: Optional[Path] = None) -> str:
    """Return the stored session id, minting and saving one on first use."""
    path = Path(path) if path is not None else default_session_path()
    try:
        existing = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        existing = ""
    if existing:
        return existing

    session_id = str(uuid.uuid4())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(session_id, encoding="utf-8")
    return session_id
