"""
Configuración centralizada para la migración PostgreSQL → MongoDB del sistema
de gestión de hackathons.

ARQUITECTURA:
- PostgreSQL es la única fuente de verdad (schema normalizado).
- MongoDB es una vista derivada y desnormalizada, reconstruida completa en
  cada migración (delete-then-insert, nunca upsert).

POLÍTICAS DE MIGRACIÓN:
Cada política define qué colecciones se generan y cuáles se eliminan:
- embedded: participants/events/submissions con snapshots embebidos.
  judges/sponsors/venues/workshops se eliminan (drop, no vaciado).
- legacy: además genera judges/sponsors/venues como colecciones propias.

USO DE LAS FUNCIONES HELPER:
    # Obtener configuración de una política
    policy = get_policy_config('embedded')
    policy['target_collections']  # ['participants', 'events', 'submissions']

    # Colecciones a eliminar antes de insertar
    get_dropped_collections('embedded')  # ['judges', 'sponsors', ...]
"""

import os
from dotenv import load_dotenv

# Carga las variables del archivo .env en las variables de entorno del sistema
load_dotenv(override=True)

# --- Configuración de PostgreSQL (Origen) ---
POSTGRES_CONFIG = {
    "dbname": os.getenv("POSTGRES_DB") or "hackathon",
    "user": os.getenv("POSTGRES_USER") or "",
    "password": os.getenv("POSTGRES_PASSWORD") or "",
    "host": os.getenv("POSTGRES_HOST") or "localhost",
    "port": os.getenv("POSTGRES_PORT") or "5432",
}

# Conexiones máximas del pool (una por query concurrente de lectura)
PG_POOL_MAX = int(os.getenv("PG_POOL_MAX") or 12)

# --- Configuración de MongoDB (Destino) ---
MONGO_URI = os.getenv("MONGO_URI") or (
    f"mongodb://{os.getenv('MONGO_HOST') or 'localhost'}"
    f":{os.getenv('MONGO_PORT') or '27017'}/"
)
MONGO_DATABASE_NAME = os.getenv("MONGO_DATABASE_NAME") or "hackathon"
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS") or 5000)

# --- Configuración HTTP ---
API_HOST = os.getenv("API_HOST") or "0.0.0.0"
API_PORT = int(os.getenv("PORT") or 8000)

# --- Tablas de origen ---
# Clave lógica → (tabla PostgreSQL, clase de registro en schemas.py)
# El orden solo afecta a los mensajes de progreso: las lecturas son concurrentes.
SOURCE_TABLES = {
    "people": ("Person", "Person"),
    "participants": ("Participant", "Participant"),
    "judges": ("Judge", "Judge"),
    "venues": ("Venue", "Venue"),
    "events": ("HackathonEvent", "HackathonEvent"),
    "sponsors": ("Sponsor", "Sponsor"),
    "submissions": ("Submission", "Submission"),
    "workshops": ("Workshop", "Workshop"),
    "registrations": ("Registration", "Registration"),
    "supports": ("Supports", "Supports"),
    "creates": ("Creates", "Creates"),
    "evaluates": ("Evaluates", "Evaluates"),
}

# --- Políticas de migración ---
# - module: módulo en migrators/ (la clase es <Module>Migrator)
# - target_collections: colecciones que se vacían y se rellenan
# - dropped_collections: colecciones obsoletas que se eliminan (best-effort)
MIGRATION_POLICIES = {
    "embedded": {
        "module": "embedded",
        "target_collections": ["participants", "events", "submissions"],
        "dropped_collections": ["judges", "sponsors", "venues", "workshops"],
        "description": "Jueces, sponsors y venues solo como snapshots embebidos",
    },
    "legacy": {
        "module": "legacy",
        "target_collections": [
            "participants",
            "events",
            "submissions",
            "judges",
            "sponsors",
            "venues",
        ],
        "dropped_collections": ["workshops"],
        "description": "Agrega colecciones judges/sponsors/venues con relaciones inversas",
    },
}

DEFAULT_POLICY = os.getenv("MIGRATION_POLICY") or "embedded"

# --- Índices secundarios ---
# (colección, [(campo, dirección)]) - ayuda de rendimiento para reportes
DOCUMENT_INDEXES = [
    ("events", [("workshops.skill_level", 1)]),
    ("events", [("start_date", 1)]),
    ("events", [("event_type", 1)]),
    ("events", [("registrations.person_id", 1)]),
    ("participants", [("registrations.event_id", 1)]),
    ("submissions", [("team.person_id", 1)]),
]

# Clave del total de workshops embebidos en las estadísticas
EMBEDDED_WORKSHOPS_STAT = "workshops (embedded)"


# --- Funciones Helper ---


def get_policy_config(policy_name: str) -> dict:
    """
    Obtiene la configuración de una política de migración por nombre.

    Args:
        policy_name: Nombre de la política (ej: 'embedded')

    Returns:
        dict: Configuración con keys module, target_collections,
              dropped_collections y description

    Raises:
        KeyError: Si la política no está configurada

    Ejemplo:
        >>> get_policy_config('legacy')['module']
        'legacy'
    """
    if policy_name not in MIGRATION_POLICIES:
        available = ", ".join(MIGRATION_POLICIES.keys())
        raise KeyError(
            f"Política '{policy_name}' no está configurada.\n"
            f"Políticas disponibles: {available}"
        )
    return MIGRATION_POLICIES[policy_name]


def get_target_collections(policy_name: str) -> list:
    """Colecciones que la política vacía y vuelve a insertar."""
    return list(get_policy_config(policy_name)["target_collections"])


def get_dropped_collections(policy_name: str) -> list:
    """Colecciones obsoletas que la política elimina antes de insertar."""
    return list(get_policy_config(policy_name).get("dropped_collections", []))


def get_source_table(source_key: str) -> str:
    """
    Obtiene el nombre de la tabla PostgreSQL para una clave lógica de origen.

    Raises:
        KeyError: Si la clave no existe en SOURCE_TABLES
    """
    if source_key not in SOURCE_TABLES:
        available = ", ".join(SOURCE_TABLES.keys())
        raise KeyError(
            f"Origen '{source_key}' no está configurado.\n"
            f"Orígenes disponibles: {available}"
        )
    return SOURCE_TABLES[source_key][0]
