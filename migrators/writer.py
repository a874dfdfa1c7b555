"""
Escritor de documentos en MongoDB (fase de escritura de la migración).

Estrategia clear-then-insert:
1. Eliminar (drop) colecciones obsoletas de la política; un fallo se loguea
   y nunca se propaga (optional_cleanup)
2. Vaciar cada colección destino con delete_many({})
3. insert_many solo si hay documentos (nunca un batch vacío)
4. Crear índices secundarios para los reportes

Las escrituras no están protegidas: un lector concurrente puede ver una
colección vacía entre el delete y el insert.
"""

import sys
from contextlib import contextmanager

from pymongo.errors import PyMongoError

import config


@contextmanager
def optional_cleanup(description):
    """
    Operación de limpieza best-effort: si falla, se loguea y se continúa.

    Solo captura errores de pymongo; cualquier otro error es un bug y se
    propaga.

    Ejemplo:
        with optional_cleanup("drop judges"):
            db["judges"].drop()
    """
    try:
        yield
    except PyMongoError as e:
        print(f"   ⚠️  {description} falló (ignorado): {e}", file=sys.stderr)


class DocumentWriter:
    """
    Escribe el resultado de una transformación en una base MongoDB.

    Attributes:
        db: Database de pymongo
    """

    def __init__(self, db):
        self.db = db

    def drop_collections(self, names):
        for name in names:
            with optional_cleanup(f"drop '{name}'"):
                self.db[name].drop()
                print(f"   🗑️  Colección obsoleta '{name}' eliminada")

    def replace_collection(self, name, documents):
        """
        Vacía la colección y reinserta todos los documentos.

        Returns:
            int: Documentos insertados
        """
        collection = self.db[name]
        collection.delete_many({})
        if not documents:
            print(f"   ⚠️  '{name}': sin documentos, se omite el insert")
            return 0
        collection.insert_many(documents)
        print(f"   ✅ '{name}': {len(documents):,} documentos")
        return len(documents)

    def write(self, documents, dropped_collections=()):
        """
        Escribe todas las colecciones destino.

        Args:
            documents: {'participants': [...], 'events': [...], ...}
            dropped_collections: Colecciones a eliminar antes de insertar

        Returns:
            dict: Documentos insertados por colección
        """
        self.drop_collections(dropped_collections)
        return {name: self.replace_collection(name, docs) for name, docs in documents.items()}

    def create_indexes(self, index_specs=None):
        """Crea índices secundarios; su ausencia cambia planes de query, no resultados."""
        specs = config.DOCUMENT_INDEXES if index_specs is None else index_specs
        created = []
        for collection_name, keys in specs:
            created.append(self.db[collection_name].create_index(keys))
        print(f"   📇 {len(created)} índices secundarios asegurados")
        return created

    def get_stats(self, collections):
        """
        Conteos actuales por colección más el total de workshops embebidos.

        Sin caché: cada llamada consulta MongoDB.
        """
        stats = {name: self.db[name].count_documents({}) for name in collections}
        pipeline = [
            {"$project": {"count": {"$size": {"$ifNull": ["$workshops", []]}}}},
            {"$group": {"_id": None, "total": {"$sum": "$count"}}},
        ]
        result = list(self.db["events"].aggregate(pipeline))
        stats[config.EMBEDDED_WORKSHOPS_STAT] = result[0]["total"] if result else 0
        return stats
