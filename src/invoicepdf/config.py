from __future__ import annotations

import os
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "invoicepdf"

WRITE_TIMEOUT = 30.0
STREAM_CHUNK_SIZE = 64 * 1024
PDF_MEDIA_TYPE = "application/pdf"


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Uses the same 3-tier resolution as _resolve_dir but only checks sources
    available before .env is loaded (env var set in shell, dev layout).
    Returns None if only platformdirs would resolve (since the dir may not exist yet).
    """
    from_env = os.environ.get("INVOICEPDF_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/invoicepdf/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("INVOICEPDF_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("INVOICEPDF_DATA_DIR", "data", kind="data")


def get_storage_dir() -> Path:
    """Directory receiving generated PDFs: ``uploads/invoices`` under the cwd by default."""
    from_env = os.environ.get("INVOICEPDF_STORAGE_DIR")
    if from_env:
        return Path(from_env)
    return Path.cwd() / "uploads" / "invoices"


def get_records_dir() -> Path:
    return get_config_dir() / "records"


def get_platform_name() -> str:
    return os.environ.get("INVOICEPDF_PLATFORM_NAME") or "OFFER-HUB"


def get_write_timeout() -> float:
    """Seconds to wait for a document write before giving up."""
    return float(os.environ.get("INVOICEPDF_WRITE_TIMEOUT") or WRITE_TIMEOUT)


def get_font_paths() -> tuple[str | None, str | None]:
    """Optional TTF files (regular, bold) replacing the built-in Helvetica."""
    return (
        os.environ.get("INVOICEPDF_FONT_REGULAR") or None,
        os.environ.get("INVOICEPDF_FONT_BOLD") or None,
    )


def get_log_level() -> str:
    return (os.environ.get("INVOICEPDF_LOG_LEVEL") or "INFO").upper()


# --- YAML records ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text())


def load_record(transaction_id: str, records_dir: Path | None = None) -> dict:
    """Load an invoice record from {records_dir}/{transaction_id}.yaml (config/records by default)."""
    return load_yaml((records_dir or get_records_dir()) / f"{transaction_id}.yaml")
