import logging
import os
import threading

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import inspect, text
from app.routes import equipments
from app.database.base import Base
from app.database.session import engine
from app.models import equipment  # noqa: F401
from app.core.config import (
    CORS_ORIGINS,
    CORS_ORIGIN_REGEX,
    DB_BOOTSTRAP_MODE,
    parse_cors_origins,
)

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Gestão de Reparações")

cors_origins = parse_cors_origins(CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


# Colunas opcionais acrescentadas depois da primeira versao da tabela.
OPTIONAL_EQUIPMENT_COLUMNS = {
    "user": "VARCHAR(50)",
    "model": "VARCHAR(30)",
    "serial_number": "VARCHAR(20)",
    "processor": "VARCHAR(30)",
    "memory_ram": "VARCHAR(15)",
    "storage": "VARCHAR(15)",
    "operating_system": "VARCHAR(20)",
    "note": "VARCHAR(500)",
}


def ensure_equipment_columns():
    inspector = inspect(engine)
    if "equipment" not in inspector.get_table_names():
        return
    columns = [col["name"] for col in inspector.get_columns("equipment")]
    preparer = engine.dialect.identifier_preparer
    with engine.begin() as conn:
        for column_name, column_type in OPTIONAL_EQUIPMENT_COLUMNS.items():
            if column_name not in columns:
                conn.execute(
                    text(f"ALTER TABLE equipment ADD COLUMN {preparer.quote(column_name)} {column_type}")
                )
        conn.execute(
            text(
                "UPDATE equipment "
                "SET state = TRIM(state) "
                "WHERE state IS NOT NULL "
                "AND state <> TRIM(state)"
            )
        )


def run_db_bootstrap() -> None:
    steps = [
        ("create_all", lambda: Base.metadata.create_all(bind=engine)),
        ("ensure_equipment_columns", ensure_equipment_columns),
    ]
    for step_name, step_fn in steps:
        try:
            step_fn()
        except Exception:  # pragma: no cover - startup hardening
            logger.exception("Falha ao executar bootstrap do banco (etapa: %s)", step_name)


_bootstrap_lock = threading.Lock()
_bootstrap_started = False


def trigger_db_bootstrap() -> None:
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return
        _bootstrap_started = True

    mode = str(os.getenv("DB_BOOTSTRAP_MODE", DB_BOOTSTRAP_MODE) or "background").strip().lower()
    if mode == "off":
        logger.info("DB bootstrap desativado (DB_BOOTSTRAP_MODE=off).")
        return
    if mode == "sync":
        logger.info("Executando DB bootstrap em modo sincronizado.")
        run_db_bootstrap()
        return

    logger.info("Executando DB bootstrap em background.")
    threading.Thread(target=run_db_bootstrap, daemon=True, name="db-bootstrap").start()


app.include_router(equipments.router)

@app.get("/")
def root():
    return {"message": "API rodando corretamente!"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/health/db")
def healthcheck_db():
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": "ok"}


@app.on_event("startup")
def startup_event():
    trigger_db_bootstrap()
