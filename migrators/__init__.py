"""
Migradores para transformar el schema relacional en colecciones MongoDB.

Cada política de migración implementa la interfaz BaseMigrator y se carga
dinámicamente en runtime según config.MIGRATION_POLICIES.

Estructura:
    base.py: Clase abstracta BaseMigrator
    reader.py: Lectura concurrente de las doce tablas de origen
    lookups.py: Índices id → fila y FK → filas (por migración)
    snapshots.py: Constructores de snapshots embebidos
    embedded.py: Política 'embedded' (participants/events/submissions)
    legacy.py: Política 'legacy' (+ judges/sponsors/venues)
    writer.py: Drop, clear-then-insert e índices en MongoDB

Los migradores son instanciados por load_migrator_for_policy() en
services/mongodb_service.py usando importlib.import_module().

Interfaz requerida (ver BaseMigrator):
    - initialize_documents()
    - initialize_warnings()
    - build_documents(sources, lookups, warnings)
"""
