from __future__ import annotations

import os


def get_document_key() -> str:
    return os.getenv("DOCUMENT_KEY", "app_data_v1")


def get_save_debounce_seconds() -> float:
    raw = os.getenv("SAVE_DEBOUNCE_SECONDS", "1.0")
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"SAVE_DEBOUNCE_SECONDS must be a number, got {raw!r}") from None
    return max(0.0, value)


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_environment() -> str:
    return os.getenv("ENVIRONMENT", "local")
