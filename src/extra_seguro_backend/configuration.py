from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .models import PdfLayout

# Load environment variables from .env file
load_dotenv()

_HERE = Path(__file__).resolve()
DEFAULT_LAYOUT_PATH = _HERE.parent / "config" / "layout.yaml"

DEFAULT_FOLDER = "Extra Seguro"
DEFAULT_PORT = 3000
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_MAX_BODY_BYTES = 15 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    drive_id: str = ""
    site_id: str = ""
    folder_path: str = DEFAULT_FOLDER
    allowed_origins: List[str] = field(default_factory=list)
    port: int = DEFAULT_PORT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    layout_path: Path = DEFAULT_LAYOUT_PATH
    log_level: str = "INFO"

    @property
    def cors_origins(self) -> List[str]:
        return self.allowed_origins or ["*"]

    @property
    def missing_credentials(self) -> List[str]:
        required = {
            "TENANT_ID": self.tenant_id,
            "CLIENT_ID": self.client_id,
            "CLIENT_SECRET": self.client_secret,
        }
        return [name for name, value in required.items() if not value]


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def settings_from_env(environ: Optional[Dict[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        tenant_id=env.get("TENANT_ID", ""),
        client_id=env.get("CLIENT_ID", ""),
        client_secret=env.get("CLIENT_SECRET", ""),
        drive_id=env.get("DRIVE_ID", ""),
        site_id=env.get("SITE_ID", ""),
        folder_path=env.get("FOLDER_PATH") or DEFAULT_FOLDER,
        allowed_origins=_split_origins(env.get("ALLOWED_ORIGIN", "")),
        port=int(env.get("PORT") or DEFAULT_PORT),
        http_timeout=float(env.get("HTTP_TIMEOUT") or DEFAULT_HTTP_TIMEOUT),
        max_body_bytes=int(env.get("MAX_BODY_BYTES") or DEFAULT_MAX_BODY_BYTES),
        layout_path=Path(env.get("LAYOUT_PATH") or DEFAULT_LAYOUT_PATH),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings_from_env()


@lru_cache(maxsize=4)
def _load_layout_config(path: Path) -> DictConfig:
    if not path.exists():
        raise FileNotFoundError(f"Layout config not found at {path}")
    return OmegaConf.load(path)


def load_layout(path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> PdfLayout:
    """
    Load the PDF form layout, optionally merged with overrides.

    The base layout is put in struct mode before merging, so an override
    naming a key the layout does not define is rejected.

    Args:
        path: YAML layout to load (default: the packaged layout)
        overrides: Nested mapping merged on top of the loaded layout

    Returns:
        The validated layout model

    Raises:
        FileNotFoundError: If the layout file does not exist
        ValueError: If an override does not fit the layout
    """
    base_container = OmegaConf.to_container(_load_layout_config(Path(path or DEFAULT_LAYOUT_PATH)), resolve=False)
    base = OmegaConf.create(base_container)
    OmegaConf.set_struct(base, True)

    try:
        merged = OmegaConf.merge(base, OmegaConf.create(overrides or {}))
    except OmegaConfBaseException as exc:
        raise ValueError(f"Invalid layout override: {exc}") from exc

    container = OmegaConf.to_container(merged, resolve=True)
    return PdfLayout.model_validate(container)
