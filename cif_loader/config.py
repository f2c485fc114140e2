from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

ENV_PREFIX = "CIF_LOADER_"


@dataclass(frozen=True)
class Settings:
    # Paths
    db_dir: str = "./data"
    log_dir: str = "./logs"
    report_dir: str = "./reports"

    # Logging
    log_level: str = "INFO"

    # Import
    check_file_sequence: bool = True


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def _read_yaml_config(path: Path) -> dict:
    if not path.exists() or not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(ENV_PREFIX + name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_bool(v: str | bool | None) -> bool | None:
    if v is None or isinstance(v, bool):
        return v
    vv = str(v).strip().lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


def loadSettings(config_path: str | None, cli_overrides: dict) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    merged = {
        "db_dir": cfg.get("db_dir", defaults.db_dir),
        "log_dir": cfg.get("log_dir", defaults.log_dir),
        "report_dir": cfg.get("report_dir", defaults.report_dir),
        "log_level": cfg.get("log_level", defaults.log_level),
        "check_file_sequence": _parse_bool(cfg.get("check_file_sequence", defaults.check_file_sequence)),
    }

    # 2) env
    env = {
        "db_dir": _env_get("DB_DIR"),
        "log_dir": _env_get("LOG_DIR"),
        "report_dir": _env_get("REPORT_DIR"),
        "log_level": _env_get("LOG_LEVEL"),
        "check_file_sequence": _parse_bool(_env_get("CHECK_FILE_SEQUENCE")),
    }
    if any(v is not None for v in env.values()):
        sources.append("env")
    for k, v in env.items():
        if v is not None:
            merged[k] = v

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for k, v in cli_overrides.items():
        if v is None:
            continue
        if k not in merged:
            raise ValueError(f"Unknown setting: {k}")
        merged[k] = v

    settings = Settings(
        db_dir=str(merged["db_dir"]),
        log_dir=str(merged["log_dir"]),
        report_dir=str(merged["report_dir"]),
        log_level=str(merged["log_level"]),
        check_file_sequence=bool(merged["check_file_sequence"]),
    )
    return LoadedSettings(settings=settings, sources_used=sources)
