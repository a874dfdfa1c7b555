"""
Índices en memoria sobre los conjuntos de filas de una migración.

- index_by: id → registro (búsqueda puntual)
- group_by: FK → tupla de registros (uno a muchos)

Los mapas son de solo lectura (MappingProxyType de tuplas) y se construyen
de nuevo en cada transformación: no hay caché a nivel de proceso.
"""

from types import MappingProxyType
from typing import NamedTuple


def index_by(rows, key):
    """Mapa id → registro. Si el id se repite, gana la última fila."""
    return MappingProxyType({getattr(row, key): row for row in rows})


def group_by(rows, key, sort_key=None):
    """
    Mapa FK → tupla de registros, en orden de lectura o por sort_key.

    Ejemplo:
        >>> group_by(workshops, 'event_id', sort_key='workshop_number')
        mappingproxy({100: (Workshop(...), Workshop(...))})
    """
    groups = {}
    for row in rows:
        groups.setdefault(getattr(row, key), []).append(row)
    if sort_key:
        for grouped in groups.values():
            grouped.sort(key=lambda row: getattr(row, sort_key))
    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


class Lookups(NamedTuple):
    people: MappingProxyType
    participants: MappingProxyType
    judges: MappingProxyType
    venues: MappingProxyType
    events: MappingProxyType
    sponsors: MappingProxyType
    submissions: MappingProxyType
    workshops_by_event: MappingProxyType
    registrations_by_event: MappingProxyType
    registrations_by_person: MappingProxyType
    supports_by_event: MappingProxyType
    supports_by_sponsor: MappingProxyType
    creates_by_submission: MappingProxyType
    creates_by_person: MappingProxyType
    evaluates_by_submission: MappingProxyType
    evaluates_by_judge: MappingProxyType
    events_by_venue: MappingProxyType


def build_lookups(sources) -> Lookups:
    """Construye todos los índices a partir de un SourceSnapshot."""
    return Lookups(
        people=index_by(sources.people, "person_id"),
        participants=index_by(sources.participants, "person_id"),
        judges=index_by(sources.judges, "person_id"),
        venues=index_by(sources.venues, "venue_id"),
        events=index_by(sources.events, "event_id"),
        sponsors=index_by(sources.sponsors, "sponsor_id"),
        submissions=index_by(sources.submissions, "submission_id"),
        workshops_by_event=group_by(sources.workshops, "event_id", sort_key="workshop_number"),
        registrations_by_event=group_by(sources.registrations, "event_id"),
        registrations_by_person=group_by(sources.registrations, "person_id"),
        supports_by_event=group_by(sources.supports, "event_id"),
        supports_by_sponsor=group_by(sources.supports, "sponsor_id"),
        creates_by_submission=group_by(sources.creates, "submission_id"),
        creates_by_person=group_by(sources.creates, "person_id"),
        evaluates_by_submission=group_by(sources.evaluates, "submission_id"),
        evaluates_by_judge=group_by(sources.evaluates, "person_id"),
        events_by_venue=group_by(sources.events, "venue_id"),
    )
