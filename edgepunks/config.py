import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

EDGEPUNKS_CONTRACT = "0x83921cb2bdfe8f70aa2988a20dd8b91c197b04b9"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    svg_dir: Path = Path("svg")
    metadata_dir: Path = Path("metadata")
    output_root: Path = Path(".")
    # Curated transparent 1-of-1s; unset means transparent 1-of-1 requests fail.
    transparent_assets_dir: Path | None = None
    max_supply: int = Field(default=888, ge=1)
    concurrency: int = Field(default=10, ge=1)
    canonical_width: int = Field(default=192, ge=1)
    # Chain
    web3_rpc_url: str | None = None
    contract_address: str = EDGEPUNKS_CONTRACT
    call_gas: int = 300_000_000
    # Logging
    log_file: Path | None = None
    log_level: str = "INFO"
    log_max_bytes: int = 5 * 1024 * 1024
    log_backups: int = 5

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return (v or "INFO").upper()

    @field_validator("svg_dir", "metadata_dir", "output_root", mode="before")
    @classmethod
    def _ensure_path(cls, v: Path | str) -> Path:
        return Path(v).expanduser()

    @field_validator("transparent_assets_dir", "log_file", mode="before")
    @classmethod
    def _ensure_optional_path(cls, v: str | Path | None) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("web3_rpc_url", mode="before")
    @classmethod
    def _blank_url(cls, v: str | None) -> str | None:
        return (v or "").strip() or None


def load_settings() -> Settings:
    # Logging
    log_file_raw = os.getenv("LOG_FILE", "").strip()
    log_level = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    log_max_bytes = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    log_backups = int(os.getenv("LOG_BACKUPS", "5"))

    return Settings(
        svg_dir=os.getenv("SVG_DIR", "svg") or "svg",
        metadata_dir=os.getenv("METADATA_DIR", "metadata") or "metadata",
        output_root=os.getenv("OUTPUT_DIR", ".") or ".",
        transparent_assets_dir=os.getenv("TRANSPARENT_ASSETS_DIR", "").strip() or None,
        max_supply=int(os.getenv("MAX_SUPPLY", "888") or 888),
        concurrency=int(os.getenv("CONCURRENCY", "10") or 10),
        canonical_width=int(os.getenv("CANONICAL_WIDTH", "192") or 192),
        web3_rpc_url=os.getenv("WEB3_RPC_URL"),
        contract_address=os.getenv("CONTRACT_ADDRESS", EDGEPUNKS_CONTRACT) or EDGEPUNKS_CONTRACT,
        call_gas=int(os.getenv("CALL_GAS", "300000000") or 300_000_000),
        log_file=log_file_raw or None,
        log_level=log_level,
        log_max_bytes=log_max_bytes,
        log_backups=log_backups,
    )


def require_rpc_url(settings: Settings) -> str:
    if not settings.web3_rpc_url:
        raise RuntimeError("WEB3_RPC_URL is not set. Define it in environment or .env file.")
    return settings.web3_rpc_url
