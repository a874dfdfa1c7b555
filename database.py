"""
Conexiones a PostgreSQL (origen) y MongoDB (destino).

Dos usos:
- hackmigra.py abre conexiones propias y las cierra al terminar.
- api.py usa handles perezosos a nivel de módulo (get_mongo_db, get_pg_pool)
  que FastAPI inyecta como dependencias.
"""

import sys

from psycopg2 import OperationalError
from psycopg2.pool import ThreadedConnectionPool
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure

import config
from services.errors import DocumentStoreUnavailableError

_mongo_client = None
_pg_pool = None


def connect_to_mongo():
    """
    Establece conexión a MongoDB usando credenciales de config.py.

    Returns:
        tuple: (client, database) de pymongo

    Raises:
        DocumentStoreUnavailableError: Si el servidor no responde al ping
    """
    print("🔌 Conectando a MongoDB...")
    client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS)
    try:
        client.admin.command("ping")
    except ConnectionFailure as e:
        client.close()
        print("❌ Error de conexión a MongoDB", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        raise DocumentStoreUnavailableError(f"MongoDB no disponible: {e}") from e
    print("✅ Conexión a MongoDB exitosa")
    return client, client[config.MONGO_DATABASE_NAME]


def create_postgres_pool(maxconn=None):
    """
    Crea un pool de conexiones PostgreSQL thread-safe.

    El lector de origen ejecuta sus doce SELECT en paralelo, uno por
    conexión del pool.

    Returns:
        ThreadedConnectionPool

    Raises:
        OperationalError: Si no puede conectar
    """
    try:
        print("🔌 Conectando a PostgreSQL...")
        pool = ThreadedConnectionPool(1, maxconn or config.PG_POOL_MAX, **config.POSTGRES_CONFIG)
        print("✅ Conexión a PostgreSQL exitosa")
        return pool
    except OperationalError as e:
        print("❌ Error de conexión a PostgreSQL", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        raise


def create_migration_pool():
    """
    Pool propio de una migración: una conexión por tabla de origen.

    Separado del pool compartido de la API para que las doce lecturas
    concurrentes no compitan con las peticiones SQL en curso. El llamador
    lo cierra con closeall() al terminar.
    """
    return create_postgres_pool(maxconn=len(config.SOURCE_TABLES))


def get_mongo_db():
    """
    Retorna la base MongoDB compartida, o None si no está disponible.

    Un None hace que los endpoints NoSQL respondan 503 sin tocar nada.
    """
    global _mongo_client
    if _mongo_client is None:
        try:
            _mongo_client, _ = connect_to_mongo()
        except DocumentStoreUnavailableError:
            return None
    return _mongo_client[config.MONGO_DATABASE_NAME]


def get_pg_pool():
    """Retorna el pool PostgreSQL compartido, creándolo en el primer uso."""
    global _pg_pool
    if _pg_pool is None:
        _pg_pool = create_postgres_pool()
    return _pg_pool


def close_connections():
    """Cierra los handles compartidos (shutdown de la API)."""
    global _mongo_client, _pg_pool
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
    if _pg_pool is not None:
        _pg_pool.closeall()
        _pg_pool = None
