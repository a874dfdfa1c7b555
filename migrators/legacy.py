"""
Migrador de la política 'legacy' (revisión anterior).

Produce las mismas colecciones que EmbeddedMigrator y además judges,
sponsors y venues como colecciones propias, cada una con su relación inversa
embebida:
- judges: evaluations[] hechas por el juez
- sponsors: supported_events[] (snapshots de evento con venue)
- venues: events[] alojados en el venue

Solo 'workshops' queda como colección obsoleta a eliminar.
"""

from .embedded import EmbeddedMigrator
from .snapshots import build_person_snapshot, project

HOSTED_EVENT_FIELDS = ("event_id", "name", "start_date", "end_date", "event_type", "max_participants")


class LegacyMigrator(EmbeddedMigrator):

    WARNING_KEYS = EmbeddedMigrator.WARNING_KEYS + (
        "judges_missing_person",
        "evaluations_missing_submission",
        "supports_missing_event",
    )

    def __init__(self, policy="legacy"):
        super().__init__(policy)

    def initialize_documents(self):
        documents = super().initialize_documents()
        documents.update({"judges": [], "sponsors": [], "venues": []})
        return documents

    def build_documents(self, sources, lookups, warnings):
        documents = super().build_documents(sources, lookups, warnings)
        documents["judges"] = [
            self._build_judge_document(j, lookups, warnings) for j in sources.judges
        ]
        documents["sponsors"] = [
            self._build_sponsor_document(s, lookups, warnings) for s in sources.sponsors
        ]
        documents["venues"] = [self._build_venue_document(v, lookups) for v in sources.venues]
        return documents

    def _build_judge_document(self, judge, lookups, warnings):
        person = lookups.people.get(judge.person_id)
        if person is None:
            warnings["judges_missing_person"] += 1

        evaluations = []
        for evaluation in lookups.evaluates_by_judge.get(judge.person_id, ()):
            submission = lookups.submissions.get(evaluation.submission_id)
            if submission is None:
                warnings["evaluations_missing_submission"] += 1
            evaluations.append(
                {
                    "submission_id": evaluation.submission_id,
                    "project_name": submission.project_name if submission else None,
                    "score": evaluation.score,
                    "feedback": evaluation.feedback,
                }
            )

        return {
            "_id": judge.person_id,
            "person": build_person_snapshot(person),
            "judge": project(judge, ("expertise_area", "years_experience", "organization")),
            "evaluations": evaluations,
        }

    def _build_sponsor_document(self, sponsor, lookups, warnings):
        supported_events = []
        for link in lookups.supports_by_sponsor.get(sponsor.sponsor_id, ()):
            snapshot = self._event_snapshot(link.event_id, lookups)
            if snapshot is None:
                warnings["supports_missing_event"] += 1
                continue
            supported_events.append(snapshot)

        document = {"_id": sponsor.sponsor_id}
        document.update(
            project(sponsor, ("company_name", "industry", "website", "contribution_amount"))
        )
        document["supported_events"] = supported_events
        return document

    def _build_venue_document(self, venue, lookups):
        document = {"_id": venue.venue_id}
        document.update(project(venue, ("name", "address", "capacity", "facilities")))
        document["events"] = [
            project(event, HOSTED_EVENT_FIELDS)
            for event in lookups.events_by_venue.get(venue.venue_id, ())
        ]
        return document
