# golem/core/config.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings
from golem.core.validate_world import validate_world_cfg

class Settings(BaseSettings):
    # путь к YAML с описанием мира (можно переопределить переменной окружения WORLD_FILE)
    world_file: str = Field(default="data/world.yaml", validation_alias="WORLD_FILE")

    # сколько записей держать в журнале сработавших правил
    journal_max_entries: int = Field(default=1000, ge=1, validation_alias="JOURNAL_MAX_ENTRIES")

    # сколько последних сообщений статуса отдавать в UI
    status_history: int = Field(default=50, ge=1, validation_alias="STATUS_HISTORY")

    # внутреннее хранилище загруженного YAML
    _cfg: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _world_path: Path | None = PrivateAttr(default=None)

    # ───────── пути ─────────
    @property
    def world_path(self) -> Path:
        if self._world_path is None:
            p = Path(self.world_file)
            if not p.is_absolute():
                p = Path.cwd() / p
            self._world_path = p
        return self._world_path

    # ───────── YAML cfg ─────────
    @property
    def cfg(self) -> Dict[str, Any]:
        return self._cfg

    def load_yaml_config(self) -> Dict[str, Any]:
        """
        Читает и проверяет YAML мира.
        Нет файла — FileNotFoundError; кривой файл — ValueError.
        """
        p = self.world_path
        if not p.exists():
            raise FileNotFoundError(f"world file not found: {p}")
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        validate_world_cfg(data)  # выбросит ValueError, если что-то не так
        self._cfg = data
        return data


settings = Settings()
