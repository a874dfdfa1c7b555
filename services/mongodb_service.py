"""
Servicio MongoDB - lógica de negocio sobre los documentos desnormalizados.

Responsabilidades:
- Migración completa PostgreSQL → MongoDB (lector → transformador → escritor)
- Estadísticas de colecciones (conteos + workshops embebidos)
- Caso de uso: inscribir participante en evento (versión NoSQL)
- Reportes analíticos: inscripciones por evento y workshops por nivel

La inscripción NoSQL escribe en ambos lados del embebido (events y
participants) para mantener la simetría que produce la migración.
"""

import importlib
from datetime import datetime

import config
from migrators.base import BaseMigrator
from migrators.reader import read_sources
from migrators.snapshots import VENUE_FIELDS
from migrators.writer import DocumentWriter
from services.common import generate_registration_number
from services.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    DocumentStoreUnavailableError,
    NotFoundError,
)


# =============================================================================
# MIGRACIÓN
# =============================================================================


def load_migrator_for_policy(policy_name):
    """
    Carga dinámicamente el migrador correspondiente a una política.

    Convención de nombres:
        embedded → migrators.embedded → EmbeddedMigrator
        legacy → migrators.legacy → LegacyMigrator

    Args:
        policy_name: Clave de config.MIGRATION_POLICIES

    Returns:
        BaseMigrator: Instancia del migrador específico

    Raises:
        KeyError: Si la política no está configurada
        ImportError: Si no existe el módulo del migrador
        TypeError: Si la clase no hereda de BaseMigrator
    """
    module_name = config.get_policy_config(policy_name)["module"]
    class_name = "".join(word.capitalize() for word in module_name.split("_")) + "Migrator"

    module = importlib.import_module(f"migrators.{module_name}")
    migrator_class = getattr(module, class_name)

    if not issubclass(migrator_class, BaseMigrator):
        raise TypeError(f"{class_name} no hereda de BaseMigrator")

    return migrator_class(policy=policy_name)


def migrate_from_relational(pool, db, policy=None, create_indexes=True, max_workers=None):
    """
    Ejecuta un ciclo completo lector → transformador → escritor.

    Idempotente: dos ejecuciones seguidas sin escrituras relacionales entre
    medio dejan los mismos documentos.

    Args:
        pool: Pool PostgreSQL (getconn/putconn)
        db: Database de pymongo, o None si MongoDB no está disponible
        policy: Política de migración (default: config.DEFAULT_POLICY)
        create_indexes: Crear índices secundarios al terminar
        max_workers: Lecturas simultáneas (ver reader.read_sources)

    Returns:
        dict: {'success': True, 'message': str, 'policy': str, 'stats': {...}}

    Raises:
        DocumentStoreUnavailableError: Si db es None (antes de cualquier query)
    """
    if db is None:
        raise DocumentStoreUnavailableError("MongoDB no conectado")

    policy = policy or config.DEFAULT_POLICY
    migrator = load_migrator_for_policy(policy)
    print(f"\n🚚 Iniciando migración (política '{policy}', {type(migrator).__name__})...")

    # PASO 1: lectura completa antes de tocar MongoDB
    sources = read_sources(pool, max_workers=max_workers)

    # PASO 2: transformación en memoria; si falla, MongoDB queda intacto
    result = migrator.transform(sources)

    # PASO 3: escritura destructiva
    print("\n   💾 Escribiendo colecciones...")
    writer = DocumentWriter(db)
    writer.write(result["documents"], migrator.get_dropped_collections())
    if create_indexes:
        writer.create_indexes()

    for name, count in result["warnings"].items():
        if count:
            print(f"   ⚠️  {name}: {count}")

    print("\n✅ Migración completada")
    return {
        "success": True,
        "message": "Migración completada",
        "policy": policy,
        "stats": result["stats"],
    }


def get_collection_stats(db, policy=None):
    """Conteos actuales por colección destino y total de workshops embebidos."""
    if db is None:
        raise DocumentStoreUnavailableError("MongoDB no conectado")
    collections = config.get_target_collections(policy or config.DEFAULT_POLICY)
    return DocumentWriter(db).get_stats(collections)


# =============================================================================
# CONSULTAS
# =============================================================================


def get_all_events(db):
    return list(db["events"].find({}).sort("start_date", 1))


def get_all_participants(db):
    return list(
        db["participants"].find({}).sort([("person.last_name", 1), ("person.first_name", 1)])
    )


# =============================================================================
# CASO DE USO: INSCRIBIR PARTICIPANTE EN EVENTO
# =============================================================================


def event_snapshot_from_document(event):
    """Snapshot de evento (misma forma que build_event_snapshot) desde un documento de events."""
    venue = event.get("venue")
    return {
        "event_id": event["_id"],
        "name": event.get("name"),
        "event_type": event.get("event_type"),
        "start_date": event.get("start_date"),
        "end_date": event.get("end_date"),
        "max_participants": event.get("max_participants"),
        "venue": {field: venue.get(field) for field in VENUE_FIELDS} if venue else None,
    }


def register_participant_for_event(
    db, person_id, event_id, ticket_type="Standard", payment_status="pending", now=None
):
    """
    Inscribe un participante en un evento (versión NoSQL).

    Flujo:
    1. Validar que el participante existe
    2. Validar que el evento existe
    3. Verificar que no está inscrito
    4. Verificar capacidad del evento
    5. Agregar la inscripción al evento y, recíprocamente, al participante

    Returns:
        dict: {'success': True, 'message': str, 'registration': {...}}

    Raises:
        NotFoundError, AlreadyRegisteredError, CapacityExceededError
    """
    participants = db["participants"]
    events = db["events"]

    participant = participants.find_one({"_id": person_id})
    if not participant:
        raise NotFoundError("Participante no encontrado")

    event = events.find_one({"_id": event_id})
    if not event:
        raise NotFoundError("Evento no encontrado")

    registrations = event.get("registrations") or []
    if any(r.get("person_id") == person_id for r in registrations):
        raise AlreadyRegisteredError("El participante ya está inscrito en este evento")

    max_participants = event.get("max_participants")
    if max_participants is not None and len(registrations) >= max_participants:
        raise CapacityExceededError("El evento alcanzó su capacidad máxima")

    now = now or datetime.now()
    fields = {
        "registration_number": generate_registration_number(now),
        "registration_timestamp": now,
        "payment_status": payment_status,
        "ticket_type": ticket_type,
    }

    # El filtro $ne evita duplicados si otra inscripción entró entre medio
    result = events.update_one(
        {"_id": event_id, "registrations.person_id": {"$ne": person_id}},
        {
            "$push": {
                "registrations": {
                    "person_id": person_id,
                    **fields,
                    "participant": participant.get("person"),
                }
            }
        },
    )
    if result.matched_count == 0:
        raise AlreadyRegisteredError("El participante ya está inscrito en este evento")

    participants.update_one(
        {"_id": person_id},
        {
            "$push": {
                "registrations": {
                    "event_id": event_id,
                    **fields,
                    "event_snapshot": event_snapshot_from_document(event),
                }
            }
        },
    )

    return {
        "success": True,
        "message": "Inscripción exitosa",
        "registration": {
            "person_id": person_id,
            "event_id": event_id,
            **fields,
            "event_name": event.get("name"),
            "venue_name": (event.get("venue") or {}).get("name"),
        },
    }


# =============================================================================
# REPORTES ANALÍTICOS
# =============================================================================


def _count_registrations_where(field, value):
    return {
        "$size": {
            "$filter": {
                "input": "$registrations",
                "as": "reg",
                "cond": {"$eq": [f"$$reg.{field}", value]},
            }
        }
    }


def _participant_label(registration):
    """'Nombre Apellido (Ticket)', o None si falta algún dato (como CONCAT con NULL en SQL)."""
    participant = registration.get("participant") or {}
    parts = (
        participant.get("first_name"),
        participant.get("last_name"),
        registration.get("ticket_type"),
    )
    if any(part is None for part in parts):
        return None
    return f"{parts[0]} {parts[1]} ({parts[2]})"


def _finish_registration_row(row):
    """
    Completa una fila del reporte igual que el SQL equivalente:
    - registered_participants: STRING_AGG ordenado por registration_timestamp
      (NULLs al final), sin etiquetas nulas; None si no queda ninguna
    - capacity_percentage: None si max_participants es nulo o cero
    """
    registrations = sorted(
        row.pop("registrations"),
        key=lambda r: (r.get("registration_timestamp") is None, r.get("registration_timestamp") or 0),
    )
    labels = [label for label in map(_participant_label, registrations) if label is not None]
    row["registered_participants"] = "; ".join(labels) if labels else None

    max_participants = row.get("max_participants")
    row["capacity_percentage"] = (
        round(row["total_registrations"] * 100.0 / max_participants, 2)
        if max_participants
        else None
    )
    return row


def get_registration_report(db, event_type=None):
    """
    Estadísticas de inscripción por evento (versión NoSQL).

    Mismos campos, valores y orden (start_date desc, total_registrations
    desc) que postgres_service.get_registration_report. Los conteos se
    calculan en el pipeline; la lista de participantes y el porcentaje de
    ocupación se completan al leer cada fila para reproducir la semántica
    NULL del SQL.
    """
    pipeline = [
        {"$match": {"event_type": event_type} if event_type else {}},
        {"$addFields": {"registrations": {"$ifNull": ["$registrations", []]}}},
        {
            "$project": {
                "_id": 0,
                "event_id": "$_id",
                "event_name": "$name",
                "event_type": 1,
                "start_date": 1,
                "end_date": 1,
                "max_participants": 1,
                "venue_name": "$venue.name",
                "venue_address": "$venue.address",
                "venue_capacity": "$venue.capacity",
                "total_registrations": {"$size": "$registrations"},
                "paid_registrations": _count_registrations_where("payment_status", "completed"),
                "pending_payments": _count_registrations_where("payment_status", "pending"),
                "standard_tickets": _count_registrations_where("ticket_type", "Standard"),
                "vip_tickets": _count_registrations_where("ticket_type", "VIP"),
                "student_tickets": _count_registrations_where("ticket_type", "Student"),
                "registrations": 1,
            }
        },
        {"$sort": {"start_date": -1, "total_registrations": -1}},
    ]
    return [_finish_registration_row(row) for row in db["events"].aggregate(pipeline)]


def get_workshop_report(db, skill_level=None):
    """
    Workshops embebidos, opcionalmente filtrados por nivel, ordenados por fecha de inicio.

    El primer $match usa el índice sobre workshops.skill_level antes del
    $unwind; el segundo descarta los workshops de otro nivel del mismo evento.
    """
    pipeline = []
    if skill_level:
        pipeline.append({"$match": {"workshops.skill_level": skill_level}})
    pipeline.append({"$unwind": "$workshops"})
    if skill_level:
        pipeline.append({"$match": {"workshops.skill_level": skill_level}})
    pipeline += [
        {
            "$project": {
                "_id": 0,
                "event_id": "$_id",
                "event_name": "$name",
                "start_date": 1,
                "venue_name": "$venue.name",
                "workshop_number": "$workshops.workshop_number",
                "title": "$workshops.title",
                "duration": "$workshops.duration",
                "skill_level": "$workshops.skill_level",
                "max_attendees": "$workshops.max_attendees",
            }
        },
        {"$sort": {"start_date": 1, "event_id": 1, "workshop_number": 1}},
    ]
    return list(db["events"].aggregate(pipeline))
