from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .paths import config_path, dotenv_path

ENV_PREFIX = "MCQGEN_"


@dataclass
class Settings:
    openai_model: str = "gpt-4o"
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    claude_model: str = "apac.anthropic.claude-sonnet-4-20250514-v1:0"

    max_tokens: int = 4096

    # Streaming hardening: max wait for the next fragment, and for the whole session.
    idle_timeout_s: float = 60.0
    total_timeout_s: float = 300.0

    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    log_level: str = "INFO"


def _as_str(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _as_int(v: Any) -> int | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v > 0 else None
    if isinstance(v, str):
        try:
            n = int(v.strip())
        except ValueError:
            return None
        return n if n > 0 else None
    return None


def _as_float(v: Any) -> float | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v) if v > 0 else None
    if isinstance(v, str):
        try:
            n = float(v.strip())
        except ValueError:
            return None
        return n if n > 0 else None
    return None


def _as_str_list(v: Any) -> list[str] | None:
    if isinstance(v, str):
        # Comma-separated in env vars.
        items = [s.strip() for s in v.split(",")]
        return [s for s in items if s] or None
    if isinstance(v, list):
        items = [s for s in v if isinstance(s, str) and s]
        return items or None
    return None


_COERCE = {
    str: _as_str,
    int: _as_int,
    float: _as_float,
    list: _as_str_list,
}


def _field_kind(f: Any) -> type:
    default = f.default_factory() if callable(f.default_factory) else f.default
    return type(default)


def apply_overrides(cfg: Settings, data: Mapping[str, Any]) -> Settings:
    """Copy recognised, well-typed values onto cfg; anything else keeps its default."""

    for f in fields(cfg):
        if f.name not in data:
            continue
        value = _COERCE[_field_kind(f)](data[f.name])
        if value is not None:
            setattr(cfg, f.name, value)
    return cfg


def load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal .env file (KEY=VALUE lines)."""

    if not path.exists():
        return {}

    env: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if k:
            env[k] = v
    return env


def merged_env(*, dotenv: Mapping[str, str], environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Precedence: existing process env wins; .env values fill in missing keys."""

    env = dict(os.environ if environ is None else environ)
    for k, v in dotenv.items():
        env.setdefault(k, v)
    return env


def env_overrides(env: Mapping[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for k, v in env.items():
        if k.startswith(ENV_PREFIX):
            out[k[len(ENV_PREFIX):].lower()] = v
    return out


def load_settings(root: Path, *, environ: Mapping[str, str] | None = None) -> Settings:
    """Load mcqgen.yaml (if present), then .env and MCQGEN_* environment overrides."""

    cfg = Settings()

    yaml_path = config_path(root)
    if yaml_path.exists():
        loaded = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            apply_overrides(cfg, loaded)

    env = merged_env(dotenv=load_dotenv(dotenv_path(root)), environ=environ)
    return apply_overrides(cfg, env_overrides(env))
