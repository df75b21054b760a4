from dotenv import load_dotenv
import os

load_dotenv()  # Carrega variáveis do .env

DATABASE_URL = os.getenv("DATABASE_URL")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"^https://.*\.vercel\.app$")
DB_BOOTSTRAP_MODE = os.getenv("DB_BOOTSTRAP_MODE", "background")
EQUIPMENT_ID_REBASE = os.getenv("EQUIPMENT_ID_REBASE", "on")


def parse_cors_origins(value: str):
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def parse_switch(value: str, default: bool = True) -> bool:
    text = str(value or "").strip().lower()
    if not text:
        return default
    if text in {"1", "on", "true", "yes", "sim"}:
        return True
    if text in {"0", "off", "false", "no", "nao"}:
        return False
    return default


def is_id_rebase_enabled() -> bool:
    return parse_switch(os.getenv("EQUIPMENT_ID_REBASE", EQUIPMENT_ID_REBASE))
