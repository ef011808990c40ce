#proximity_analysis/src/proximity_analysis/cli/run_ranking.py

# ============================================================
# 📦 src/proximity_analysis/cli/run_ranking.py
# ============================================================

import argparse
import json
import signal
import threading
from dataclasses import replace
from loguru import logger

from proximity_analysis.application.factory import build_engine
from proximity_analysis.config import configurar_logs, settings_from_env
from proximity_analysis.domain.errors import ProximityError


def aplicar_default(valor, default):
    """Aplica default apenas se o valor não tiver sido passado."""
    return default if valor is None else valor


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Calcula e grava o ranking de prestadores mais próximos por cliente."
    )

    alvo = parser.add_mutually_exclusive_group(required=True)
    alvo.add_argument("--cliente_id", type=int, help="Calcula apenas este cliente")
    alvo.add_argument("--todos", action="store_true", help="Calcula todos os clientes")

    parser.add_argument("--top_k", type=int, default=None, help="Quantidade de prestadores por cliente")
    parser.add_argument("--workers", type=int, default=None, help="Clientes em paralelo no modo --todos")
    parser.add_argument("--provider", choices=["google", "osrm", "haversine"], default=None)
    parser.add_argument(
        "--memoria",
        type=str,
        default=None,
        help="JSON com clientes/prestadores; usa repositório em memória em vez do PostgreSQL",
    )
    parser.add_argument("--log_level", type=str, default=None)

    args = parser.parse_args(argv)
    configurar_logs(args.log_level)

    settings = settings_from_env()
    settings = replace(
        settings,
        top_k=aplicar_default(args.top_k, settings.top_k),
        batch_max_workers=aplicar_default(args.workers, settings.batch_max_workers),
        routing_provider=aplicar_default(args.provider, settings.routing_provider),
    )
    if settings.top_k < 1:
        parser.error("--top_k deve ser >= 1")

    repository = None
    if args.memoria:
        from proximity_analysis.infrastructure.memory_repository import InMemoryProximityRepository

        repository = InMemoryProximityRepository.from_json(args.memoria)

    engine = build_engine(settings, repository=repository)
    logger.info(
        f"⚙️ Parâmetros: top_k={settings.top_k} | provider={settings.routing_provider} | "
        f"workers={settings.batch_max_workers}"
    )

    try:
        if args.cliente_id is not None:
            try:
                entries = engine.rank_for_client(args.cliente_id)
            except ProximityError as e:
                logger.error(f"❌ {e}")
                return 1
            print(json.dumps([e.to_dict() for e in entries], ensure_ascii=False, default=str, indent=2))
            return 0

        # Ctrl+C interrompe o lote sem cortar clientes em andamento
        parar = threading.Event()
        anterior = signal.signal(signal.SIGINT, lambda *_: parar.set())
        try:
            resultado = engine.rank_for_all_clients(cancelado=parar.is_set)
        finally:
            signal.signal(signal.SIGINT, anterior)
        print(json.dumps(resultado, ensure_ascii=False))
        return 0
    finally:
        engine.resolver.close()


if __name__ == "__main__":
    raise SystemExit(main())
