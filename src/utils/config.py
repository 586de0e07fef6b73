from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: Optional[str] = None) -> Optional[str]:
    for k in keys:
        v = os.getenv(k)
        if v is not None and v.strip() != "":
            return v.strip()
    return default


def _get_float(*keys: str, default: Optional[float] = None) -> Optional[float]:
    v = _get_env(*keys)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    db_path: str
    processing_delay: float
    reachability_timeout: float
    request_timeout: Optional[float]
    debug: bool


settings = Settings(
    api_base_url=_get_env("AQUAPURE_API_URL", default="http://localhost:3001"),
    db_path=_get_env("AQUAPURE_DB_PATH", default="data/storefront.sqlite"),
    processing_delay=_get_float("AQUAPURE_PROCESSING_DELAY", default=2.0),
    reachability_timeout=_get_float("AQUAPURE_REACHABILITY_TIMEOUT", default=3.0),
    # cart mutations run without a timeout unless one is configured
    request_timeout=_get_float("AQUAPURE_REQUEST_TIMEOUT", default=None),
    debug=bool(_get_env("DEBUG")),
)
