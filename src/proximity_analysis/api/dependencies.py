# proximity_analysis/api/dependencies.py

from functools import lru_cache

from proximity_analysis.application.factory import build_engine
from proximity_analysis.application.ranking_engine import ProximityRankingEngine
from proximity_analysis.config import ProximitySettings, settings_from_env


@lru_cache(maxsize=1)
def get_settings() -> ProximitySettings:
    return settings_from_env()


@lru_cache(maxsize=1)
def _engine_singleton() -> ProximityRankingEngine:
    return build_engine(get_settings())


def get_engine() -> ProximityRankingEngine:
    """Engine compartilhado pelo processo (sobrescrito nos testes)."""
    return _engine_singleton()


def get_redis():
    import redis

    return redis.from_url(get_settings().redis_url)
