"""
Módulo base para migradores PostgreSQL → MongoDB.

Define la interfaz común (contrato) que cada política de migración debe
implementar. Así services/mongodb_service.py y hackmigra.py funcionan con
cualquier política sin conocer sus detalles internos.

Patrón de diseño: Strategy Pattern
- mongodb_service.migrate_from_relational = Contexto (orquestador)
- BaseMigrator = Estrategia abstracta
- EmbeddedMigrator, LegacyMigrator = Estrategias concretas

Flujo de uso:
1. El orquestador carga dinámicamente un migrador según la política
2. reader.read_sources() lee los doce conjuntos de filas
3. transform() construye índices y documentos (función pura, en memoria)
4. DocumentWriter escribe el resultado en MongoDB

La transformación nunca falla por huecos referenciales: cada FK colgante
incrementa un contador en 'warnings'.
"""

from abc import ABC, abstractmethod

import config
from .lookups import build_lookups


class BaseMigrator(ABC):
    """
    Clase abstracta que define la interfaz para políticas de migración.

    Attributes:
        policy (str): Nombre de la política (clave de config.MIGRATION_POLICIES)
    """

    def __init__(self, policy: str):
        self.policy = policy

    @abstractmethod
    def initialize_documents(self) -> dict:
        """
        Retorna estructura vacía para acumular documentos por colección.

        Returns:
            dict: {'participants': [], 'events': [], ...}
                  Las keys deben coincidir con target_collections de la política.
        """
        pass

    @abstractmethod
    def initialize_warnings(self) -> dict:
        """
        Retorna los contadores de integridad referencial en cero.

        Returns:
            dict: {'registrations_missing_event': 0, ...}
        """
        pass

    @abstractmethod
    def build_documents(self, sources, lookups, warnings) -> dict:
        """
        Proyecta cada fila relacional en su documento desnormalizado.

        Args:
            sources: SourceSnapshot con los doce conjuntos de filas
            lookups: Lookups construidos por lookups.build_lookups()
            warnings: Dict de contadores, se incrementa in situ

        Returns:
            dict: Misma forma que initialize_documents(), con los documentos
        """
        pass

    def transform(self, sources) -> dict:
        """
        Función pura: filas relacionales → documentos + warnings + stats.

        Los índices se construyen por llamada y se descartan al terminar.

        Returns:
            dict: {
                'documents': {'participants': [...], ...},
                'warnings': {'registrations_missing_event': 0, ...},
                'stats': {'participants': 2, ..., 'warnings_...': 0}
            }
        """
        lookups = build_lookups(sources)
        warnings = self.initialize_warnings()
        documents = self.build_documents(sources, lookups, warnings)
        return {
            "documents": documents,
            "warnings": warnings,
            "stats": self.build_stats(documents, warnings),
        }

    def build_stats(self, documents: dict, warnings: dict) -> dict:
        """
        Conteos por colección, total de workshops embebidos y warnings.

        El total embebido se contrasta con el conteo de la tabla Workshop:
        es el chequeo de consistencia principal entre ambos almacenes.
        """
        stats = {name: len(docs) for name, docs in documents.items()}
        stats[config.EMBEDDED_WORKSHOPS_STAT] = sum(
            len(event.get("workshops") or []) for event in documents.get("events", [])
        )
        for name, count in warnings.items():
            stats[f"warnings_{name}"] = count
        return stats

    def get_target_collections(self) -> list:
        return config.get_target_collections(self.policy)

    def get_dropped_collections(self) -> list:
        return config.get_dropped_collections(self.policy)
