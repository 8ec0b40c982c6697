# golem/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from golem.core.config import settings
from golem.api.routes.game import router as game_router
from golem.runtime import init_game, reset_game


# ─────────────────────────────────────────────────────────────────────────────
# Приложение
# ─────────────────────────────────────────────────────────────────────────────
app = FastAPI(title="golem")

# ─────────────────────────────────────────────────────────────────────────────
# Подключаем роутеры
# ─────────────────────────────────────────────────────────────────────────────
app.include_router(game_router)

# Корень: сразу на список предметов
@app.get("/")
def root():
    return RedirectResponse(url="/api/game/items", status_code=302)

# ─────────────────────────────────────────────────────────────────────────────
# Старт/стоп
# ─────────────────────────────────────────────────────────────────────────────
@app.on_event("startup")
def _startup():
    # 1) грузим и проверяем YAML мира
    settings.load_yaml_config()

    # 2) собираем автомат, предметы и журнал из проверенного cfg
    init_game(
        settings.cfg,
        journal_max_entries=settings.journal_max_entries,
        status_history=settings.status_history,
    )
    logging.getLogger("web").info("game ready: %s", settings.world_path)

@app.on_event("shutdown")
def _shutdown():
    reset_game()
