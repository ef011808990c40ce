# proximity_analysis/src/proximity_analysis/cli/init_db.py

from dotenv import load_dotenv
from loguru import logger

from database.db_connection import verificar_conexao_banco
from proximity_analysis.config import configurar_logs
from proximity_analysis.infrastructure.database_writer import ProximityDatabaseWriter


def main():
    load_dotenv()
    configurar_logs()

    if not verificar_conexao_banco():
        logger.error("❌ Banco indisponível — tabelas não criadas.")
        return 1

    ProximityDatabaseWriter().create_tables()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
