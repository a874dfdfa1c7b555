"""
Migrador de la política 'embedded' (revisión actual).

Implementa la interfaz BaseMigrator para transformar las filas del schema
relacional en tres colecciones MongoDB desnormalizadas.

ARQUITECTURA DE LOS DOCUMENTOS:
- participants: person + atributos de participante + registrations[]
  (cada una con event_snapshot) + submissions[] co-creadas
- events: venue + workshops[] (autoritativo, ya no hay colección propia)
  + sponsors[] + registrations[] (cada una con snapshot del participante)
- submissions: team[] + evaluations[] (cada una con snapshot del juez)
  + snapshot del evento

DECISIONES DE DISEÑO:
- _id = PK relacional (sin remapeo de claves)
- Jueces, sponsors y venues solo existen como snapshots embebidos
- FKs colgantes: snapshot None o elemento filtrado + contador en warnings,
  nunca una excepción

Uso (desde services/mongodb_service.py):
    migrator = EmbeddedMigrator(policy='embedded')
    result = migrator.transform(sources)
    result['documents']['events']  # [{'_id': 100, ...}]
"""

from .base import BaseMigrator
from .snapshots import (
    build_event_snapshot,
    build_judge_snapshot,
    build_person_snapshot,
    build_registration_fields,
    build_sponsor_snapshot,
    build_submission_snapshot,
    build_venue_snapshot,
    build_workshop_document,
    project,
    to_document_value,
)


class EmbeddedMigrator(BaseMigrator):
    """
    Migrador con jueces/sponsors/venues solo como snapshots embebidos.
    """

    WARNING_KEYS = (
        "participants_missing_person",
        "participants_missing_manager",
        "registrations_missing_event",
        "registrations_missing_person",
        "creates_missing_submission",
        "creates_missing_person",
        "events_missing_venue",
        "supports_missing_sponsor",
        "submissions_missing_event",
        "evaluations_missing_judge",
        "workshops_missing_event",
    )

    def __init__(self, policy="embedded"):
        super().__init__(policy)

    # =========================================================================
    # MÉTODOS PÚBLICOS - INTERFAZ BaseMigrator
    # =========================================================================

    def initialize_documents(self):
        return {"participants": [], "events": [], "submissions": []}

    def initialize_warnings(self):
        return {key: 0 for key in self.WARNING_KEYS}

    def build_documents(self, sources, lookups, warnings):
        documents = self.initialize_documents()

        documents["participants"] = [
            self._build_participant_document(p, lookups, warnings)
            for p in sources.participants
        ]
        documents["events"] = [
            self._build_event_document(e, lookups, warnings) for e in sources.events
        ]
        documents["submissions"] = [
            self._build_submission_document(s, lookups, warnings)
            for s in sources.submissions
        ]

        # Workshops de eventos inexistentes no quedan embebidos en ningún lado
        warnings["workshops_missing_event"] += sum(
            len(rows)
            for event_id, rows in lookups.workshops_by_event.items()
            if event_id not in lookups.events
        )
        return documents

    # =========================================================================
    # MÉTODOS PRIVADOS: PARTICIPANTS
    # =========================================================================

    def _build_participant_document(self, participant, lookups, warnings):
        person_id = participant.person_id

        person = lookups.people.get(person_id)
        if person is None:
            warnings["participants_missing_person"] += 1

        manager = None
        if participant.manager_id is not None:
            manager = build_person_snapshot(lookups.people.get(participant.manager_id))
            if manager is None:
                warnings["participants_missing_manager"] += 1

        return {
            "_id": person_id,
            "person": build_person_snapshot(person),
            "participant": {
                "registration_date": to_document_value(participant.registration_date),
                "t_shirt_size": participant.t_shirt_size,
                "dietary_restrictions": participant.dietary_restrictions,
                "manager_id": participant.manager_id,
            },
            "manager": manager,
            "registrations": self._extract_participant_registrations(person_id, lookups, warnings),
            "submissions": self._extract_participant_submissions(person_id, lookups, warnings),
        }

    def _extract_participant_registrations(self, person_id, lookups, warnings):
        registrations = []
        for registration in lookups.registrations_by_person.get(person_id, ()):
            event_snapshot = self._event_snapshot(registration.event_id, lookups)
            if event_snapshot is None:
                warnings["registrations_missing_event"] += 1

            registrations.append(
                {
                    "event_id": registration.event_id,
                    **build_registration_fields(registration),
                    "event_snapshot": event_snapshot,
                }
            )
        return registrations

    def _extract_participant_submissions(self, person_id, lookups, warnings):
        """Links 'creates' → snapshots; los que apuntan a una submission borrada se descartan."""
        submissions = []
        for link in lookups.creates_by_person.get(person_id, ()):
            submission = lookups.submissions.get(link.submission_id)
            if submission is None:
                warnings["creates_missing_submission"] += 1
                continue
            submissions.append(
                build_submission_snapshot(
                    submission, self._event_snapshot(submission.event_id, lookups)
                )
            )
        return submissions

    # =========================================================================
    # MÉTODOS PRIVADOS: EVENTS
    # =========================================================================

    def _build_event_document(self, event, lookups, warnings):
        venue = lookups.venues.get(event.venue_id)
        if venue is None:
            warnings["events_missing_venue"] += 1

        document = {"_id": event.event_id}
        document.update(
            project(event, ("name", "start_date", "end_date", "event_type", "max_participants"))
        )
        document["venue"] = build_venue_snapshot(venue, with_facilities=True)
        document["workshops"] = [
            build_workshop_document(w)
            for w in lookups.workshops_by_event.get(event.event_id, ())
        ]
        document["sponsors"] = self._extract_event_sponsors(event.event_id, lookups, warnings)
        document["registrations"] = self._extract_event_registrations(
            event.event_id, lookups, warnings
        )
        return document

    def _extract_event_sponsors(self, event_id, lookups, warnings):
        sponsors = []
        for link in lookups.supports_by_event.get(event_id, ()):
            snapshot = build_sponsor_snapshot(lookups.sponsors.get(link.sponsor_id))
            if snapshot is None:
                warnings["supports_missing_sponsor"] += 1
                continue
            sponsors.append(snapshot)
        return sponsors

    def _extract_event_registrations(self, event_id, lookups, warnings):
        registrations = []
        for registration in lookups.registrations_by_event.get(event_id, ()):
            participant = build_person_snapshot(lookups.people.get(registration.person_id))
            if participant is None:
                warnings["registrations_missing_person"] += 1

            registrations.append(
                {
                    "person_id": registration.person_id,
                    **build_registration_fields(registration),
                    "participant": participant,
                }
            )
        return registrations

    # =========================================================================
    # MÉTODOS PRIVADOS: SUBMISSIONS
    # =========================================================================

    def _build_submission_document(self, submission, lookups, warnings):
        event_snapshot = self._event_snapshot(submission.event_id, lookups)
        # Un event_id nulo no es una FK colgante
        if submission.event_id is not None and event_snapshot is None:
            warnings["submissions_missing_event"] += 1

        document = {"_id": submission.submission_id}
        document.update(
            project(
                submission,
                (
                    "project_name",
                    "description",
                    "submission_time",
                    "technology_stack",
                    "repository_url",
                    "event_id",
                ),
            )
        )
        document["event"] = event_snapshot
        document["team"] = self._extract_team(submission.submission_id, lookups, warnings)
        document["evaluations"] = self._extract_evaluations(
            submission.submission_id, lookups, warnings
        )
        return document

    def _extract_team(self, submission_id, lookups, warnings):
        team = []
        for link in lookups.creates_by_submission.get(submission_id, ()):
            member = build_person_snapshot(lookups.people.get(link.person_id))
            if member is None:
                warnings["creates_missing_person"] += 1
                continue
            team.append(member)
        return team

    def _extract_evaluations(self, submission_id, lookups, warnings):
        evaluations = []
        for evaluation in lookups.evaluates_by_submission.get(submission_id, ()):
            judge = build_judge_snapshot(
                lookups.people.get(evaluation.person_id),
                lookups.judges.get(evaluation.person_id),
            )
            if judge is None:
                warnings["evaluations_missing_judge"] += 1

            evaluations.append(
                {
                    "judge_id": evaluation.person_id,
                    "score": evaluation.score,
                    "feedback": evaluation.feedback,
                    "evaluation_date": to_document_value(evaluation.evaluation_date),
                    "judge": judge,
                }
            )
        return evaluations

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _event_snapshot(self, event_id, lookups):
        if event_id is None:
            return None
        event = lookups.events.get(event_id)
        venue = lookups.venues.get(event.venue_id) if event is not None else None
        return build_event_snapshot(event, venue)
