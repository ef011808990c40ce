# proximity_analysis/src/proximity_analysis/cli/run_statistics.py

import argparse
from loguru import logger

from proximity_analysis.config import configurar_logs, settings_from_env


def main(argv=None):
    parser = argparse.ArgumentParser(description="Resumo dos rankings gravados e exportação opcional.")
    parser.add_argument("--exportar", choices=["csv", "xlsx"], default=None, help="Exporta o ranking completo")
    parser.add_argument("--cliente_id", type=int, default=None, help="Restringe a exportação a um cliente")
    parser.add_argument("--memoria", type=str, default=None, help="JSON com clientes/prestadores (repositório em memória)")
    args = parser.parse_args(argv)

    configurar_logs()
    settings = settings_from_env()

    from proximity_analysis.application.factory import build_engine
    from proximity_analysis.reporting.export_ranking_report import exportar_relatorio_ranking

    repository = None
    if args.memoria:
        from proximity_analysis.infrastructure.memory_repository import InMemoryProximityRepository

        repository = InMemoryProximityRepository.from_json(args.memoria)

    engine = build_engine(settings, repository=repository)
    stats = engine.get_statistics()

    print("\n=== RANKING DE PROXIMIDADE ===\n")
    print(f"👥 Clientes ranqueados : {stats['clientCount']}")
    print(f"🏥 Prestadores citados : {stats['providerCount']}")
    print(f"📏 Distância média     : {stats['avgDistanceKm']:.1f} km")
    print(f"🧾 Total de entradas   : {stats['totalEntries']}")

    if args.exportar:
        if args.cliente_id is not None:
            entries = engine.reader.get_rankings_by_cliente(args.cliente_id)
        else:
            entries = engine.reader.get_rankings()
        caminho = exportar_relatorio_ranking(entries, output_dir=f"{settings.output_dir}/reports", formato=args.exportar)
        if not caminho:
            logger.warning("⚠️ Nenhum ranking para exportar.")
            return 1
        print(f"\n📄 Relatório: {caminho}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
