"""
Lector del schema relacional (fase de lectura de la migración).

Ejecuta un SELECT * por cada tabla de config.SOURCE_TABLES. Las doce
consultas se lanzan juntas (una conexión del pool por consulta) y se esperan
juntas: no hay dependencia de orden entre ellas porque todos los índices se
construyen después de leer.

No se pide transacción ni aislamiento de snapshot: un escritor concurrente
puede producir una lectura inconsistente entre tablas.

Cualquier error de consulta o de validación aborta la lectura completa.
MongoDB no se toca hasta la fase de escritura.
"""

from concurrent.futures import ThreadPoolExecutor

from psycopg2.extras import RealDictCursor

import config
import schemas


def fetch_table(pool, table):
    """
    Lee todas las filas de una tabla como dicts.

    Args:
        pool: Pool con getconn()/putconn() (psycopg2.pool)
        table: Nombre de la tabla (de config.SOURCE_TABLES, nunca del usuario)

    Returns:
        list: Filas como dicts columna → valor
    """
    conn = pool.getconn()
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(f"SELECT * FROM {table}")
            return [dict(row) for row in cursor.fetchall()]
    finally:
        pool.putconn(conn)


def read_sources(pool, max_workers=None) -> schemas.SourceSnapshot:
    """
    Lee los doce conjuntos de filas y los valida como registros tipados.

    Args:
        pool: Pool con getconn()/putconn()
        max_workers: Consultas simultáneas (default: una por tabla). Nunca
            debe superar las conexiones libres del pool: psycopg2 lanza
            PoolError en vez de esperar.

    Returns:
        SourceSnapshot

    Raises:
        psycopg2.Error: Si falla cualquier consulta
        pydantic.ValidationError: Si una fila no tiene la forma esperada
    """
    print(f"   📥 Leyendo {len(config.SOURCE_TABLES)} tablas de PostgreSQL...")

    with ThreadPoolExecutor(max_workers=max_workers or len(config.SOURCE_TABLES)) as executor:
        futures = {
            key: executor.submit(fetch_table, pool, table)
            for key, (table, _) in config.SOURCE_TABLES.items()
        }
        # result() re-lanza la primera excepción de cada consulta
        raw = {key: future.result() for key, future in futures.items()}

    sources = {}
    for key, (table, record_name) in config.SOURCE_TABLES.items():
        record_class = getattr(schemas, record_name)
        sources[key] = [record_class.model_validate(row) for row in raw[key]]
        print(f"      ✅ {table}: {len(sources[key]):,} filas")

    return schemas.SourceSnapshot(**sources)
