# ==========================================================
# 📦 src/proximity_analysis/config.py
# ==========================================================

import os
import sys
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv
from loguru import logger


@dataclass(frozen=True)
class ProximitySettings:
    routing_provider: str = "google"
    gmaps_api_key: Optional[str] = None
    osrm_url: str = "http://osrm:5000"
    routing_timeout_s: float = 30.0

    top_k: int = 3
    resolver_max_workers: int = 8
    batch_max_workers: int = 4

    redis_url: str = "redis://redis:6379/0"
    ranking_job_timeout: int = 7200
    output_dir: str = "output"


def settings_from_env(carregar_dotenv: bool = True) -> ProximitySettings:
    """Lê a configuração do ambiente (opcionalmente carregando o .env)."""
    if carregar_dotenv:
        load_dotenv()

    top_k = int(os.getenv("RANKING_TOP_K", "3"))
    if top_k < 1:
        raise ValueError(f"RANKING_TOP_K deve ser >= 1 (recebido {top_k})")

    redis_url = (
        os.getenv("REDIS_URL")
        or f"redis://{os.getenv('REDIS_HOST', 'redis')}:{os.getenv('REDIS_PORT', '6379')}/0"
    )

    return ProximitySettings(
        routing_provider=os.getenv("ROUTING_PROVIDER", "google").strip().lower(),
        gmaps_api_key=os.getenv("GMAPS_API_KEY") or None,
        osrm_url=os.getenv("OSRM_URL", "http://osrm:5000").rstrip("/"),
        routing_timeout_s=float(os.getenv("ROUTING_TIMEOUT_S", "30")),
        top_k=top_k,
        resolver_max_workers=int(os.getenv("RESOLVER_MAX_WORKERS", "8")),
        batch_max_workers=int(os.getenv("BATCH_MAX_WORKERS", "4")),
        redis_url=redis_url,
        ranking_job_timeout=int(os.getenv("RANKING_JOB_TIMEOUT", "7200")),
        output_dir=os.getenv("OUTPUT_DIR", "output"),
    )


def configurar_logs(level: Optional[str] = None):
    """Sink único no stdout, no formato dos CLIs."""
    logger.remove()
    logger.add(
        sys.stdout,
        colorize=True,
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )
