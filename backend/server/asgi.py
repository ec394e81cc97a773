"""
ASGI entry point.

Used by uvicorn / gunicorn. Reads .env before the config is built, so
LLM_PROVIDER / LLM_MODEL / SYSTEM_PROMPT can live in a local file.
"""

from dotenv import load_dotenv

load_dotenv()

# pylint: disable=wrong-import-position
from config import AppConfig
from observability.logger import log_event
from server.app import create_app

config = AppConfig.load_from_env()

log_event({
    "event_type": "app_starting",
    "env": config.env,
    "llm_provider": config.llm_provider,
    "llm_model": config.llm_model,
    "developer_mode": config.developer_mode,
})

app = create_app(config)
