"""
Funciones helper compartidas para todos los tests.

Proporciona:
- Dobles en memoria de MongoDB (FakeDatabase) y del pool PostgreSQL
  (FakePool, ScriptedConnection) para probar sin servidores reales
- Base mongomock (mongomock_database) donde los pipelines de agregación
  se ejecutan de verdad
- Conjuntos de filas de ejemplo (SourceSnapshot) para el transformador
"""

import copy
import os
import re
import sys
import threading
import time
import uuid
from datetime import date, datetime
from types import SimpleNamespace

import mongomock
from psycopg2 import ProgrammingError
from psycopg2.pool import PoolError
from pymongo.errors import OperationFailure

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import schemas


# =============================================================================
# MONGODB EN MEMORIA
# =============================================================================


def _values_at(doc, path):
    """Valores en una ruta con puntos; recorre arrays como MongoDB."""
    values = [doc]
    for part in path.split("."):
        next_values = []
        for value in values:
            if isinstance(value, list):
                next_values.extend(v.get(part) for v in value if isinstance(v, dict))
            elif isinstance(value, dict):
                next_values.append(value.get(part))
        values = next_values
    flat = []
    for value in values:
        flat.extend(value if isinstance(value, list) else [value])
    return flat


def _matches(doc, filt):
    for key, cond in (filt or {}).items():
        values = _values_at(doc, key)
        if isinstance(cond, dict) and "$ne" in cond:
            if cond["$ne"] in values:
                return False
        elif cond not in values:
            return False
    return True


class FakeCursor(list):
    def sort(self, key_or_list, direction=1):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction)]
        for key, direction in reversed(keys):
            list.sort(
                self,
                key=lambda d: (_values_at(d, key) or [None])[0] or "",
                reverse=direction == -1,
            )
        return self


class FakeCollection:
    def __init__(self, db, name):
        self.db = db
        self.name = name
        self.docs = []
        self.exists = False
        self.indexes = []
        self.insert_calls = 0
        self.delete_calls = 0

    def insert_many(self, documents):
        if not documents:
            raise TypeError("documents must be a non-empty list")
        self.insert_calls += 1
        self.exists = True
        self.docs.extend(copy.deepcopy(list(documents)))
        return SimpleNamespace(inserted_ids=[d.get("_id") for d in documents])

    def delete_many(self, filt):
        self.delete_calls += 1
        kept = [d for d in self.docs if not _matches(d, filt)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return SimpleNamespace(deleted_count=deleted)

    def drop(self):
        self.db.drop_collection(self.name)

    def find(self, filt=None, projection=None):
        return FakeCursor(copy.deepcopy(d) for d in self.docs if _matches(d, filt))

    def find_one(self, filt=None):
        found = self.find(filt)
        return found[0] if found else None

    def update_one(self, filt, update):
        for doc in self.docs:
            if _matches(doc, filt):
                for field, value in update.get("$push", {}).items():
                    doc.setdefault(field, []).append(copy.deepcopy(value))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def count_documents(self, filt):
        return len(self.find(filt))

    def create_index(self, keys):
        self.exists = True
        self.indexes.append(keys)
        return "_".join(f"{field}_{direction}" for field, direction in keys)


class FakeDatabase:
    """
    Base MongoDB mínima: colecciones perezosas, drop real y fallos inyectables.

    Args:
        failing_drops: Nombres de colección cuyo drop() lanza OperationFailure
    """

    def __init__(self, failing_drops=()):
        self.collections = {}
        self.failing_drops = set(failing_drops)
        self.dropped = []

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self, name)
        return self.collections[name]

    def drop_collection(self, name):
        if name in self.failing_drops:
            raise OperationFailure(f"drop {name} no permitido")
        self.dropped.append(name)
        self.collections.pop(name, None)

    def list_collection_names(self):
        return [name for name, coll in self.collections.items() if coll.exists]

    def seed(self, name, documents):
        """Crea una colección con documentos previos (estado anterior a migrar)."""
        self[name].insert_many(documents)
        self[name].insert_calls = 0
        return self[name]


def mongomock_database(name=None):
    """Base MongoDB en memoria con motor de agregación (mongomock), vacía en cada llamada."""
    return mongomock.MongoClient()[name or f"hackathon_test_{uuid.uuid4().hex}"]


# =============================================================================
# POSTGRESQL EN MEMORIA
# =============================================================================


class FakePgCursor:
    def __init__(self, connection):
        self.connection = connection
        self.result = None
        self.rowcount = -1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.connection.executed.append((query, params))
        self.result = self.connection.respond(query, params)
        if isinstance(self.result, int):
            self.rowcount = self.result

    def fetchone(self):
        return self.result

    def fetchall(self):
        return self.result


class FakePgConnection:
    """Conexión que resuelve 'SELECT * FROM <tabla>' contra dicts en memoria."""

    def __init__(self, tables, failing_tables=(), query_delay=0):
        self.tables = tables
        self.failing_tables = set(failing_tables)
        self.query_delay = query_delay
        self.executed = []

    def cursor(self, cursor_factory=None):
        return FakePgCursor(self)

    def respond(self, query, params):
        table = re.search(r"FROM\s+(\w+)", query).group(1)
        if self.query_delay:
            time.sleep(self.query_delay)
        if table in self.failing_tables:
            raise ProgrammingError(f'relation "{table.lower()}" does not exist')
        return [dict(row) for row in self.tables.get(table, [])]


class FakePool:
    """
    Pool con getconn()/putconn() que registra las conexiones prestadas.

    Con maxconn, getconn() lanza PoolError al agotarse, igual que
    psycopg2.pool.ThreadedConnectionPool (no espera a que se libere una).
    """

    def __init__(self, tables, failing_tables=(), maxconn=None, query_delay=0):
        self.tables = tables
        self.failing_tables = failing_tables
        self.maxconn = maxconn
        self.query_delay = query_delay
        self.borrowed = 0
        self.returned = 0
        self.in_use = 0
        self.closed = False
        self._lock = threading.Lock()

    def getconn(self):
        with self._lock:
            if self.maxconn is not None and self.in_use >= self.maxconn:
                raise PoolError("connection pool exhausted")
            self.in_use += 1
            self.borrowed += 1
        return FakePgConnection(self.tables, self.failing_tables, self.query_delay)

    def putconn(self, conn):
        with self._lock:
            self.in_use -= 1
            self.returned += 1

    def closeall(self):
        self.closed = True


class ScriptedConnection:
    """
    Conexión con respuestas en orden: cada execute() consume la siguiente.

    Una respuesta int se expone como rowcount; cualquier otra como resultado
    de fetchone()/fetchall().
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, cursor_factory=None):
        return FakePgCursor(self)

    def respond(self, query, params):
        if not self.responses:
            raise AssertionError(f"Query inesperada: {query}")
        return self.responses.pop(0)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


# =============================================================================
# DATOS DE EJEMPLO
# =============================================================================


def person_row(person_id, first_name="Ada", last_name="Lovelace"):
    return {
        "person_id": person_id,
        "first_name": first_name,
        "last_name": f"{last_name}{person_id}",
        "email": f"person{person_id}@example.com",
        "phone": f"+43 660 {person_id:04d}",
        "password_hash": "interno",  # columna interna, nunca debe embeberse
    }


def scenario_tables():
    """
    3 personas, 1 venue, 1 evento (capacidad 2), 2 participantes,
    1 inscripción (persona 1 → evento 100).
    """
    return {
        "Person": [person_row(1), person_row(2), person_row(3)],
        "Participant": [
            {"person_id": 1, "registration_date": date(2025, 1, 10), "t_shirt_size": "M",
             "dietary_restrictions": None, "manager_id": None},
            {"person_id": 2, "registration_date": date(2025, 1, 11), "t_shirt_size": "L",
             "dietary_restrictions": "vegan", "manager_id": 1},
        ],
        "Judge": [],
        "Venue": [{"venue_id": 10, "name": "TU Wien", "address": "Karlsplatz 13",
                   "capacity": 300, "facilities": "WiFi"}],
        "HackathonEvent": [
            {"event_id": 100, "name": "Vienna Hacks", "start_date": date(2025, 3, 1),
             "end_date": date(2025, 3, 2), "event_type": "Hackathon",
             "max_participants": 2, "venue_id": 10},
        ],
        "Sponsor": [],
        "Submission": [],
        "Workshop": [],
        "Registration": [
            {"person_id": 1, "event_id": 100, "registration_number": "REG-2025-001",
             "registration_timestamp": datetime(2025, 2, 1, 9, 30),
             "payment_status": "completed", "ticket_type": "Standard"},
        ],
        "Supports": [],
        "Creates": [],
        "Evaluates": [],
    }


def sample_tables():
    """Conjunto más rico: dos eventos, workshops, sponsors, submissions y evaluaciones."""
    tables = scenario_tables()
    tables["Person"] += [person_row(4, "Grace", "Hopper"), person_row(5, "Alan", "Turing")]
    tables["Participant"].append(
        {"person_id": 3, "registration_date": date(2025, 1, 12), "t_shirt_size": "S",
         "dietary_restrictions": None, "manager_id": None}
    )
    tables["Judge"] = [
        {"person_id": 4, "expertise_area": "AI", "years_experience": 12, "organization": "ACME"},
        {"person_id": 5, "expertise_area": "Security", "years_experience": 7, "organization": "Initech"},
    ]
    tables["Venue"].append({"venue_id": 11, "name": "Impact Hub", "address": "Lindengasse 56",
                            "capacity": 120, "facilities": "Beamer"})
    tables["HackathonEvent"].append(
        {"event_id": 101, "name": "Graz Jam", "start_date": date(2025, 5, 3),
         "end_date": date(2025, 5, 4), "event_type": "Game Jam",
         "max_participants": 50, "venue_id": 11}
    )
    tables["Workshop"] = [
        {"event_id": 100, "workshop_number": 2, "title": "Workshop 2: Security", "description": "x",
         "duration": 90, "skill_level": "Advanced", "max_attendees": 20},
        {"event_id": 100, "workshop_number": 1, "title": "Workshop 1: AI", "description": "x",
         "duration": 60, "skill_level": "Beginner", "max_attendees": 30},
        {"event_id": 101, "workshop_number": 1, "title": "Workshop 1: Unity", "description": "x",
         "duration": 120, "skill_level": "Beginner", "max_attendees": 25},
    ]
    tables["Registration"] += [
        {"person_id": 2, "event_id": 101, "registration_number": "REG-2025-002",
         "registration_timestamp": datetime(2025, 2, 2, 10, 0),
         "payment_status": "pending", "ticket_type": "Student"},
        {"person_id": 3, "event_id": 101, "registration_number": "REG-2025-003",
         "registration_timestamp": datetime(2025, 2, 3, 11, 0),
         "payment_status": "completed", "ticket_type": "VIP"},
    ]
    tables["Sponsor"] = [
        {"sponsor_id": 7, "company_name": "Cloudy GmbH", "industry": "Cloud",
         "website": "https://cloudy.example", "contribution_amount": 5000.0},
    ]
    tables["Supports"] = [{"sponsor_id": 7, "event_id": 100}, {"sponsor_id": 7, "event_id": 101}]
    tables["Submission"] = [
        {"submission_id": 500, "project_name": "GreenRoute", "description": "Routing",
         "submission_time": datetime(2025, 3, 2, 14, 0), "technology_stack": "Python",
         "repository_url": "https://github.com/team1/greenroute", "event_id": 100},
        {"submission_id": 501, "project_name": "PixelQuest", "description": "Game",
         "submission_time": datetime(2025, 5, 4, 16, 0), "technology_stack": "C#",
         "repository_url": "https://github.com/team2/pixelquest", "event_id": None},
    ]
    tables["Creates"] = [
        {"person_id": 1, "submission_id": 500},
        {"person_id": 2, "submission_id": 500},
        {"person_id": 3, "submission_id": 501},
    ]
    tables["Evaluates"] = [
        {"person_id": 4, "submission_id": 500, "score": 8.5, "feedback": "Very innovative"},
        {"person_id": 5, "submission_id": 500, "score": 7.0, "feedback": "Good implementation"},
        {"person_id": 4, "submission_id": 501, "score": 9.0, "feedback": "Excellent work!"},
    ]
    return tables


def make_sources(tables) -> schemas.SourceSnapshot:
    """Valida un dict tabla → filas como SourceSnapshot (igual que el lector)."""
    import config

    sources = {}
    for key, (table, record_name) in config.SOURCE_TABLES.items():
        record_class = getattr(schemas, record_name)
        sources[key] = [record_class.model_validate(row) for row in tables.get(table, [])]
    return schemas.SourceSnapshot(**sources)


def by_id(documents):
    return {doc["_id"]: doc for doc in documents}


# =============================================================================
# MIGRADORES
# =============================================================================


def get_all_migrator_instances():
    """Retorna [(política, instancia)] para cada política configurada."""
    import config
    from services.mongodb_service import load_migrator_for_policy

    return [(name, load_migrator_for_policy(name)) for name in config.MIGRATION_POLICIES]


def get_all_migrator_classes():
    """Retorna [(NombreClase, clase)] para cada política configurada."""
    return [
        (type(migrator).__name__, type(migrator))
        for _, migrator in get_all_migrator_instances()
    ]
