"""
Decoder settings.

Settings live in a YAML file; ``${VAR}`` references are expanded from the
environment after ``.env`` is loaded. A few environment variables override
the file directly.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from meme_decoder.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config/decoder.yaml")
CONFIG_PATH_ENV = "MEME_DECODER_CONFIG"

_ENV_REF = re.compile(r"\$\{([^}]+)\}")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class ParseConfig:
    """What a transaction decode includes and how failures surface."""
    # only decode these programs (empty = all)
    program_ids: list[str] = field(default_factory=list)
    # never decode these programs
    ignore_program_ids: list[str] = field(default_factory=list)
    # infer swaps from transfers for programs without a decoder
    try_unknown_dex: bool = True
    # re-raise decode failures instead of marking the result failed
    throw_error: bool = False
    # collapse multi-hop routes into one trade
    aggregate_trades: bool = False

    def accepts(self, program_id: str) -> bool:
        if self.program_ids and program_id not in self.program_ids:
            return False
        return program_id not in self.ignore_program_ids


@dataclass
class DecoderSettings:
    log_level: str = "INFO"
    log_file: str | None = None
    json_log_file: str | None = None
    parse: ParseConfig = field(default_factory=ParseConfig)

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {value!r}")


def _as_log_level(name: str, value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"{name}: unknown level {level!r}")
    return level


def _as_str_list(name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"{name}: expected a list of program ids, got {value!r}")


def expand_env(raw: str) -> str:
    """Replace ``${VAR}`` with its environment value; unset variables are an error."""
    missing = [var for var in _ENV_REF.findall(raw) if os.environ.get(var) is None]
    if missing:
        raise ConfigError(f"environment variables not set: {', '.join(sorted(set(missing)))}")
    return _ENV_REF.sub(lambda m: os.environ[m.group(1)], raw)


def parse_settings(data: dict[str, Any] | None) -> DecoderSettings:
    data = dict(data or {})
    parse_data = dict(data.pop("parse", None) or {})

    known = {f.name for f in fields(DecoderSettings)} - {"parse"}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown settings: {', '.join(sorted(unknown))}")
    known_parse = {f.name for f in fields(ParseConfig)}
    unknown = set(parse_data) - known_parse
    if unknown:
        raise ConfigError(f"unknown parse settings: {', '.join(sorted(unknown))}")

    parse = ParseConfig(
        program_ids=_as_str_list("parse.program_ids", parse_data.get("program_ids")),
        ignore_program_ids=_as_str_list("parse.ignore_program_ids", parse_data.get("ignore_program_ids")),
        try_unknown_dex=_as_bool("parse.try_unknown_dex", parse_data.get("try_unknown_dex", True)),
        throw_error=_as_bool("parse.throw_error", parse_data.get("throw_error", False)),
        aggregate_trades=_as_bool("parse.aggregate_trades", parse_data.get("aggregate_trades", False)),
    )

    return DecoderSettings(
        log_level=_as_log_level("log_level", data.get("log_level", "INFO")),
        log_file=data.get("log_file"),
        json_log_file=data.get("json_log_file"),
        parse=parse,
    )


def load_settings(path: str | Path | None = None) -> DecoderSettings:
    """Load settings from YAML (or defaults when no file exists) plus env overrides."""
    load_dotenv()

    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    path = Path(path)

    data: dict[str, Any] = {}
    if path.exists():
        raw = expand_env(path.read_text(encoding="utf-8"))
        try:
            data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

    settings = parse_settings(data)

    level = os.environ.get("MEME_DECODER_LOG_LEVEL")
    if level:
        settings.log_level = _as_log_level("MEME_DECODER_LOG_LEVEL", level)
    throw_error = os.environ.get("MEME_DECODER_THROW_ERROR")
    if throw_error is not None:
        settings.parse.throw_error = _as_bool("MEME_DECODER_THROW_ERROR", throw_error)
    return settings
