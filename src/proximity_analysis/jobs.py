#proximity_analysis/src/proximity_analysis/jobs.py

from dataclasses import replace

import redis
from rq import get_current_job
from loguru import logger

from proximity_analysis.application.factory import build_engine
from proximity_analysis.config import settings_from_env


FILA_RANKING = "proximity_ranking"


def chave_cancelamento(job_id: str) -> str:
    return f"proximity:cancel:{job_id}"


def solicitar_cancelamento(redis_conn, job_id: str, ttl_s: int = 86400):
    """Marca o job para não iniciar novos clientes."""
    redis_conn.set(chave_cancelamento(job_id), "1", ex=ttl_s)
    logger.warning(f"🛑 Cancelamento registrado para o job {job_id}")


def _atualizar_meta(job, **campos):
    if job is None:
        return
    job.meta.update(campos)
    job.save_meta()


# ============================================================
# 🚀 Job: ranking de todos os clientes (RQ)
# ============================================================
def executar_ranking_lote_job(params: dict | None = None):
    """
    Executa o ranking em lote dentro de um worker RQ.
    Publica progress/status/mensagem em job.meta e respeita a
    chave de cancelamento no Redis.
    """
    params = params or {}
    job = get_current_job()
    job_id = job.id if job else params.get("job_id", "local")

    settings = settings_from_env()
    if params.get("top_k") is not None:
        top_k = int(params["top_k"])
        if top_k < 1:
            _atualizar_meta(job, status="error", mensagem=f"top_k inválido: {top_k}")
            raise ValueError(f"top_k deve ser >= 1 (recebido {top_k})")
        settings = replace(settings, top_k=top_k)

    redis_conn = redis.from_url(settings.redis_url)
    engine = build_engine(settings)

    logger.info(f"🚀 Iniciando job de ranking em lote ({job_id}) | top_k={engine.top_k}")
    _atualizar_meta(job, progress=0, status="running", mensagem="Ranking em lote iniciado")

    def cancelado() -> bool:
        return bool(redis_conn.exists(chave_cancelamento(job_id)))

    def progresso(feitos: int, total: int):
        pct = int(feitos * 100 / total) if total else 100
        _atualizar_meta(job, progress=pct, mensagem=f"{feitos}/{total} clientes processados")

    try:
        resultado = engine.rank_for_all_clients(cancelado=cancelado, progresso=progresso)
    except Exception as e:
        logger.exception(f"❌ Erro no job {job_id}: {e}")
        _atualizar_meta(job, status="error", mensagem=str(e))
        raise
    finally:
        engine.resolver.close()

    status = "cancelled" if resultado["cancelled"] else "done"
    msg = (
        f"Ranking em lote {'cancelado' if resultado['cancelled'] else 'concluído'} | "
        f"sucesso={resultado['succeeded']} | falha={resultado['failed']}"
    )
    if status == "done":
        _atualizar_meta(job, progress=100, status=status, mensagem=msg)
    else:
        _atualizar_meta(job, status=status, mensagem=msg)
    logger.success(f"✅ {msg}")

    return {"status": status, "job_id": job_id, **resultado}
