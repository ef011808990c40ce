# ==========================================================
# 📦 src/proximity_analysis/api/main_proximity_api.py
# ==========================================================

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from proximity_analysis.api.routes import router

load_dotenv()

app = FastAPI(
    title="Proximity Analysis API",
    version="1.0.0",
    description="Ranking de prestadores mais próximos por cliente",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================================
# 💥 Erros não tratados → 500 com corpo JSON
# ==========================================================
@app.exception_handler(Exception)
async def erro_inesperado(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"💥 Erro inesperado em {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Erro inesperado no servidor"})


app.include_router(router, prefix="/proximity")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("proximity_analysis.api.main_proximity_api:app", host="0.0.0.0", port=8000)
