from __future__ import annotations

import json
import logging
import logging.config
import pathlib
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from enum import Enum
from logging import Logger
from typing import Any

import numpy as np


DEFAULT_CONFIG_PATH = pathlib.Path(__file__).resolve().parents[3] / "configs" / "logging.json"

_DEFAULT_PROFILE = {
    "level": "INFO",
    "debug": {"enabled": False, "modules": []},
    "handlers": {"console": {"enabled": True}},
    "format": {"json": True, "timestamp_utc": True},
}

_CONFIGURED = False
_RUN_ID: str | None = None
_MODE: str | None = None
_DEBUG_ENABLED = False
_DEBUG_MODULES: set[str] = set()


def _load_logging_config(config_path: str | pathlib.Path | None) -> dict:
    path = pathlib.Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return {"active_profile": "default", "profiles": {"default": _DEFAULT_PROFILE}}


def _select_profile(cfg: dict, mode: str | None) -> dict:
    # flat (profile-less) configs are accepted as a single profile
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        return cfg
    name = mode if mode in profiles else (cfg.get("active_profile") or "default")
    return profiles.get(name, _DEFAULT_PROFILE)


# ---------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------

def safe_jsonable(obj: Any) -> Any:
    """Best-effort conversion of log context into json-compatible values."""
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, pathlib.PurePath):
        return obj.as_posix()
    if isinstance(obj, BaseException):
        return f"{type(obj).__name__}: {obj}"
    if is_dataclass(obj) and not isinstance(obj, type):
        return safe_jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): safe_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [safe_jsonable(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted((safe_jsonable(v) for v in obj), key=str)
    return repr(obj)


class ContextFilter(logging.Filter):
    """Guarantees record.context / record.category always exist."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "context"):
            record.context = None
        if not hasattr(record, "category"):
            record.category = None
        return True


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter for deterministic, parseable logs."""

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "ts_ms": int(record.created * 1000),
            "level": record.levelname,
            "logger": record.name,
            "event": msg,
            "module": record.module,
            "msg": msg,
        }

        category = getattr(record, "category", None)
        if category:
            payload["category"] = category

        context = getattr(record, "context", None)
        if context:
            payload["context"] = safe_jsonable(context)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------

def init_logging(
    config_path: str | pathlib.Path | None = None,
    *,
    run_id: str | None = None,
    mode: str | None = None,
) -> None:
    global _CONFIGURED, _RUN_ID, _MODE, _DEBUG_ENABLED, _DEBUG_MODULES

    cfg = _load_logging_config(config_path)
    profile = _select_profile(cfg, mode)

    level = str(profile.get("level", "INFO")).upper()
    debug_cfg = profile.get("debug", {}) or {}
    handlers_cfg = profile.get("handlers", {}) or {}

    handlers: dict[str, dict] = {}
    console = handlers_cfg.get("console", {}) or {}
    if console.get("enabled", True):
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": str(console.get("level", level)).upper(),
            "formatter": "json",
            "filters": ["context"],
        }

    file_cfg = handlers_cfg.get("file", {}) or {}
    if file_cfg.get("enabled", False):
        path = pathlib.Path(
            str(file_cfg["path"]).format(run_id=run_id or "default", mode=mode or "default")
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": str(file_cfg.get("level", level)).upper(),
            "formatter": "json",
            "filters": ["context"],
            "filename": str(path),
            "encoding": "utf-8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": ContextFilter}},
        "formatters": {"json": {"()": JsonFormatter}},
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
    })

    _RUN_ID = run_id
    _MODE = mode
    _DEBUG_ENABLED = bool(debug_cfg.get("enabled", False))
    _DEBUG_MODULES = set(debug_cfg.get("modules", []) or [])
    _CONFIGURED = True


def get_logger(name: str = "trade_sim") -> Logger:
    if not _CONFIGURED:
        init_logging()
    return logging.getLogger(name)


# ---------------------------------------------------------------------
# Emit helpers
# ---------------------------------------------------------------------

def _debug_module_matches(logger_name: str, module: str) -> bool:
    """True if the dotted `module` appears as a contiguous run inside `logger_name`."""
    parts = logger_name.split(".")
    wanted = module.split(".")
    n = len(wanted)
    return any(parts[i:i + n] == wanted for i in range(len(parts) - n + 1))


def _with_run_context(context: dict) -> dict:
    ctx = dict(context)
    if _RUN_ID is not None:
        ctx.setdefault("run_id", _RUN_ID)
    if _MODE is not None:
        ctx.setdefault("mode", _MODE)
    return ctx


def log_debug(logger: Logger, msg: str, **context):
    if not _DEBUG_ENABLED:
        return
    if _DEBUG_MODULES and not any(_debug_module_matches(logger.name, m) for m in _DEBUG_MODULES):
        return
    logger.debug(msg, extra={"context": _with_run_context(context)}, stacklevel=2)


def log_info(logger: Logger, msg: str, **context):
    logger.info(msg, extra={"context": _with_run_context(context)}, stacklevel=2)


def log_warn(logger: Logger, msg: str, **context):
    logger.warning(msg, extra={"context": _with_run_context(context)}, stacklevel=2)


def log_error(logger: Logger, msg: str, **context):
    logger.error(msg, extra={"context": _with_run_context(context)}, stacklevel=2)


def log_exception(logger: Logger, msg: str, **context):
    logger.exception(msg, extra={"context": _with_run_context(context)}, stacklevel=2)


def log_trade(logger: Logger, msg: str, **context):
    """Executed-order journal line (category=trade)."""
    logger.info(msg, extra={"context": _with_run_context(context), "category": "trade"}, stacklevel=2)
