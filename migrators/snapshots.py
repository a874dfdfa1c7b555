"""
Constructores de snapshots embebidos.

Un snapshot es una copia puntual de los campos de otra entidad dentro de un
documento. Cada constructor proyecta una lista blanca de campos (nunca
columnas internas) y retorna None cuando la entidad referenciada no existe.

Los valores se normalizan para BSON: date → datetime a medianoche,
Decimal → float.
"""

from datetime import date, datetime, time
from decimal import Decimal

PERSON_FIELDS = ("person_id", "first_name", "last_name", "email", "phone")
VENUE_FIELDS = ("venue_id", "name", "address", "capacity")
EVENT_FIELDS = ("event_id", "name", "event_type", "start_date", "end_date", "max_participants")
SPONSOR_FIELDS = ("sponsor_id", "company_name", "industry", "website", "contribution_amount")
WORKSHOP_FIELDS = ("workshop_number", "title", "description", "duration", "skill_level", "max_attendees")
REGISTRATION_FIELDS = ("registration_number", "registration_timestamp", "payment_status", "ticket_type")
SUBMISSION_FIELDS = ("submission_id", "project_name", "submission_time", "repository_url")
JUDGE_FIELDS = ("expertise_area", "years_experience", "organization")


def to_document_value(value):
    """Convierte un valor de PostgreSQL a un tipo que BSON sabe codificar."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, Decimal):
        return float(value)
    return value


def project(record, fields) -> dict:
    return {field: to_document_value(getattr(record, field)) for field in fields}


def build_person_snapshot(person):
    if person is None:
        return None
    return project(person, PERSON_FIELDS)


def build_venue_snapshot(venue, with_facilities=False):
    if venue is None:
        return None
    snapshot = project(venue, VENUE_FIELDS)
    if with_facilities:
        snapshot["facilities"] = venue.facilities
    return snapshot


def build_event_snapshot(event, venue):
    """
    Snapshot de evento con su venue embebido.

    Retorna None si el evento no existe (registro o submission colgante);
    el llamador cuenta el warning.
    """
    if event is None:
        return None
    snapshot = project(event, EVENT_FIELDS)
    snapshot["venue"] = build_venue_snapshot(venue)
    return snapshot


def build_sponsor_snapshot(sponsor):
    if sponsor is None:
        return None
    return project(sponsor, SPONSOR_FIELDS)


def build_workshop_document(workshop):
    return project(workshop, WORKSHOP_FIELDS)


def build_registration_fields(registration) -> dict:
    """Atributos propios de la inscripción (sin las FKs)."""
    return project(registration, REGISTRATION_FIELDS)


def build_submission_snapshot(submission, event_snapshot=None):
    if submission is None:
        return None
    snapshot = project(submission, SUBMISSION_FIELDS)
    snapshot["event"] = event_snapshot
    return snapshot


def build_judge_snapshot(person, judge=None):
    """
    Snapshot de juez: datos de Person más atributos del rol si existe Judge.

    En la política embebida los jueces no tienen colección propia; se
    resuelven de forma transitoria desde Person + Judge.
    """
    snapshot = build_person_snapshot(person)
    if snapshot is not None and judge is not None:
        snapshot.update(project(judge, JUDGE_FIELDS))
    return snapshot
