"""Runtime settings for the reconciliation pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal, Mapping

from sales_ledger.store import InMemoryStore, JsonDocumentStore, RecordStore
from sales_ledger.workbook_store import WorkbookStore

StoreKind = Literal["json", "workbook", "memory"]

DEFAULT_STORE_PATH = "sales_ledger_store"


@dataclass(frozen=True, slots=True)
class EngineSettings:
    store_path: str = DEFAULT_STORE_PATH
    store_kind: StoreKind = "json"
    retry_attempts: int = 3  # Total tries per store call
    retry_backoff: float = 0.5  # Seconds before the first retry, doubled after
    retention_years: int = 3  # Window kept when a ledger is too large to store
    upload_token: str | None = None  # Shared secret; None disables the check

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineSettings":
        """Build settings from ``SALES_LEDGER_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()

        kind = env.get("SALES_LEDGER_STORE_KIND", settings.store_kind).strip().lower()
        if kind not in ("json", "workbook", "memory"):
            raise ValueError(f"SALES_LEDGER_STORE_KIND must be json, workbook or memory, got {kind!r}")

        return replace(
            settings,
            store_path=env.get("SALES_LEDGER_STORE", settings.store_path),
            store_kind=kind,
            retry_attempts=_int(env, "SALES_LEDGER_RETRIES", settings.retry_attempts),
            retry_backoff=_float(env, "SALES_LEDGER_BACKOFF", settings.retry_backoff),
            retention_years=_int(
                env, "SALES_LEDGER_RETENTION_YEARS", settings.retention_years
            ),
            upload_token=env.get("SALES_LEDGER_TOKEN") or None,
        )

    def open_store(self) -> RecordStore:
        if self.store_kind == "memory":
            return InMemoryStore()
        if self.store_kind == "workbook":
            path = Path(self.store_path)
            if path.suffix.lower() != ".xlsx":
                path = path / "ledgers.xlsx"
            return WorkbookStore(path)
        return JsonDocumentStore(self.store_path)


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


__all__ = ["DEFAULT_STORE_PATH", "EngineSettings", "StoreKind"]
