#proximity_analysis/src/proximity_analysis/api/routes.py

# ============================================================
# 📦 proximity_analysis/api/routes.py
# ============================================================

import os
from dataclasses import asdict
from pathlib import Path
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from loguru import logger

from proximity_analysis.api.dependencies import get_engine, get_redis, get_settings
from proximity_analysis.application.ranking_engine import ProximityRankingEngine
from proximity_analysis.config import ProximitySettings
from proximity_analysis.domain.errors import ClientNotAnalyzable, NoCandidates, PersistenceFailed

router = APIRouter()


class RelatorioRequest(BaseModel):
    formato: Literal["csv", "xlsx"] = "csv"
    cliente_id: Optional[int] = None


class LoteAsyncRequest(BaseModel):
    top_k: Optional[int] = None


def _parse_id(valor: str, rotulo: str) -> int:
    try:
        numero = int(valor)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"ID de {rotulo} inválido")
    if numero < 1:
        raise HTTPException(status_code=400, detail=f"ID de {rotulo} inválido")
    return numero


# ============================================================
# 🧪 Health check
# ============================================================
@router.get("/health")
def health_check():
    return {"status": "ok", "service": "proximity_analysis"}


# ============================================================
# 👥 Clientes
# ============================================================
@router.get("/clientes")
def listar_clientes(engine: ProximityRankingEngine = Depends(get_engine)):
    return [asdict(c) for c in engine.reader.get_clientes()]


@router.get("/clientes/uf/{uf}")
def listar_clientes_uf(uf: str, engine: ProximityRankingEngine = Depends(get_engine)):
    return [asdict(c) for c in engine.reader.get_clientes_by_uf(uf)]


@router.get("/clientes/{cliente_id}")
def buscar_cliente(cliente_id: str, engine: ProximityRankingEngine = Depends(get_engine)):
    cid = _parse_id(cliente_id, "cliente")
    cliente = engine.reader.get_cliente_by_id(cid)
    if cliente is None:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")
    return asdict(cliente)


# ============================================================
# 🏥 Prestadores
# ============================================================
@router.get("/prestadores")
def listar_prestadores(engine: ProximityRankingEngine = Depends(get_engine)):
    return [asdict(p) for p in engine.reader.get_prestadores()]


@router.get("/prestadores/uf/{uf}")
def listar_prestadores_uf(uf: str, engine: ProximityRankingEngine = Depends(get_engine)):
    return [asdict(p) for p in engine.reader.get_prestadores_by_uf(uf)]


@router.get("/prestadores/{prestador_id}")
def buscar_prestador(prestador_id: str, engine: ProximityRankingEngine = Depends(get_engine)):
    pid = _parse_id(prestador_id, "prestador")
    prestador = engine.reader.get_prestador_by_id(pid)
    if prestador is None:
        raise HTTPException(status_code=404, detail="Prestador não encontrado")
    return asdict(prestador)


# ============================================================
# 🏁 Rankings persistidos
# ============================================================
@router.get("/rankings")
def listar_rankings(engine: ProximityRankingEngine = Depends(get_engine)):
    return [e.to_dict() for e in engine.reader.get_rankings()]


@router.get("/rankings/cliente/{cliente_id}")
def listar_rankings_cliente(cliente_id: str, engine: ProximityRankingEngine = Depends(get_engine)):
    cid = _parse_id(cliente_id, "cliente")
    return [e.to_dict() for e in engine.reader.get_rankings_by_cliente(cid)]


# ============================================================
# 🧮 Cálculo sob demanda
# ============================================================
@router.post("/calculate/cliente/{cliente_id}")
def calcular_cliente(cliente_id: str, engine: ProximityRankingEngine = Depends(get_engine)):
    cid = _parse_id(cliente_id, "cliente")
    if engine.reader.get_cliente_by_id(cid) is None:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")

    try:
        entries = engine.rank_for_client(cid)
    except (ClientNotAnalyzable, NoCandidates) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceFailed as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "message": "Distâncias calculadas e gravadas com sucesso",
        "ranking": [e.to_dict() for e in entries],
    }


@router.post("/calculate/all")
def calcular_todos(engine: ProximityRankingEngine = Depends(get_engine)):
    resultado = engine.rank_for_all_clients()
    return {
        "success": True,
        "message": "Cálculo em lote concluído",
        "results": {"success": resultado["succeeded"], "failed": resultado["failed"]},
    }


# ============================================================
# 🚀 Lote assíncrono (RQ)
# ============================================================
@router.post("/calculate/all/async")
def calcular_todos_async(
    body: LoteAsyncRequest = LoteAsyncRequest(),
    settings: ProximitySettings = Depends(get_settings),
    redis_conn=Depends(get_redis),
):
    import uuid
    from rq import Queue
    from proximity_analysis.jobs import FILA_RANKING, executar_ranking_lote_job

    if body.top_k is not None and body.top_k < 1:
        raise HTTPException(status_code=400, detail="top_k deve ser >= 1")

    job_id = f"ranking-lote-{uuid.uuid4()}"
    queue = Queue(FILA_RANKING, connection=redis_conn)
    job = queue.enqueue(
        executar_ranking_lote_job,
        {"top_k": body.top_k, "job_id": job_id},
        job_timeout=settings.ranking_job_timeout,
        result_ttl=86400,
        failure_ttl=86400,
        job_id=job_id,
    )
    job.meta["progress"] = 0
    job.meta["status"] = "queued"
    job.meta["mensagem"] = "Job enfileirado e aguardando execução"
    job.save_meta()

    logger.success(f"📤 Job de ranking em lote enfileirado: {job.id}")
    return {"status": "queued", "job_id": job.id}


@router.get("/status/{job_id}")
def status_job(job_id: str, redis_conn=Depends(get_redis)):
    from rq.job import Job
    from rq.exceptions import NoSuchJobError

    try:
        job = Job.fetch(job_id, connection=redis_conn)
    except NoSuchJobError:
        raise HTTPException(status_code=404, detail="Job não encontrado")

    return {
        "job_id": job_id,
        "progress": job.meta.get("progress", 0),
        "status": job.meta.get("status", job.get_status()),
        "message": job.meta.get("mensagem", ""),
    }


@router.post("/cancel/{job_id}")
def cancelar_job(job_id: str, redis_conn=Depends(get_redis)):
    from proximity_analysis.jobs import solicitar_cancelamento

    solicitar_cancelamento(redis_conn, job_id)
    return {"job_id": job_id, "status": "cancel_requested"}


# ============================================================
# 🔎 Análise (top N) e estatísticas
# ============================================================
@router.get("/analysis/cliente/{cliente_id}")
def analise_cliente(
    cliente_id: str,
    limit: int = Query(3),
    engine: ProximityRankingEngine = Depends(get_engine),
):
    cid = _parse_id(cliente_id, "cliente")
    return [e.to_dict() for e in engine.get_top_for_client(cid, limit)]


@router.get("/statistics")
def estatisticas(engine: ProximityRankingEngine = Depends(get_engine)):
    return engine.get_statistics()


# ============================================================
# 📄 Relatório e 🗺️ mapa
# ============================================================
@router.post("/relatorio")
def exportar_relatorio(
    body: RelatorioRequest,
    engine: ProximityRankingEngine = Depends(get_engine),
    settings: ProximitySettings = Depends(get_settings),
):
    from proximity_analysis.reporting.export_ranking_report import exportar_relatorio_ranking

    if body.cliente_id is not None:
        entries = engine.reader.get_rankings_by_cliente(body.cliente_id)
    else:
        entries = engine.reader.get_rankings()

    caminho = exportar_relatorio_ranking(
        entries,
        output_dir=os.path.join(settings.output_dir, "reports"),
        formato=body.formato,
    )
    if not caminho:
        raise HTTPException(status_code=404, detail="Nenhum ranking encontrado para exportação.")
    return {"arquivo": caminho}


@router.post("/mapa/cliente/{cliente_id}")
def gerar_mapa(
    cliente_id: str,
    engine: ProximityRankingEngine = Depends(get_engine),
    settings: ProximitySettings = Depends(get_settings),
):
    from proximity_analysis.visualization.ranking_map import gerar_mapa_cliente

    cid = _parse_id(cliente_id, "cliente")
    cliente = engine.reader.get_cliente_by_id(cid)
    if cliente is None:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")
    if cliente.location is None:
        raise HTTPException(status_code=422, detail="Cliente sem coordenadas válidas")

    entries = engine.get_top_for_client(cid, engine.top_k)
    output_path = Path(settings.output_dir) / "maps" / f"ranking_cliente_{cid}.html"
    gerar_mapa_cliente(cliente, entries, output_path)

    return {"status": "success", "arquivo_html": str(output_path), "prestadores": len(entries)}
