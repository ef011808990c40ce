# src/proximity_analysis/application/factory.py

from typing import Optional

from proximity_analysis.application.distance_resolver import DistanceResolver
from proximity_analysis.application.ranking_engine import ProximityRankingEngine
from proximity_analysis.config import ProximitySettings, settings_from_env


def build_engine(settings: Optional[ProximitySettings] = None, repository=None) -> ProximityRankingEngine:
    """
    Monta o engine com o resolvedor configurado.
    Sem `repository`, usa o leitor/gravador PostgreSQL.
    """
    settings = settings or settings_from_env()
    resolver = DistanceResolver.from_settings(settings)

    if repository is not None:
        reader = writer = repository
    else:
        from proximity_analysis.infrastructure.database_reader import ProximityDatabaseReader
        from proximity_analysis.infrastructure.database_writer import ProximityDatabaseWriter

        reader, writer = ProximityDatabaseReader(), ProximityDatabaseWriter()

    return ProximityRankingEngine.from_settings(settings, reader, writer, resolver)
