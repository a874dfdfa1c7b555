"""
Tests del servicio PostgreSQL con conexiones guionadas (sin servidor real).

Cada execute() consume la siguiente respuesta de ScriptedConnection, así que
el orden de las respuestas sigue el orden de las consultas del servicio.
"""

import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from services import postgres_service
from services.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    InvalidRequestError,
    NotFoundError,
)
from tests.helpers import ScriptedConnection

NOW = datetime(2025, 2, 20, 12, 0)
EVENT_ROW = {"event_id": 100, "name": "Vienna Hacks", "max_participants": 2}
DETAILS_ROW = {
    "person_id": 2,
    "event_id": 100,
    "registration_number": "REG-2025-1740052800000-001",
    "event_name": "Vienna Hacks",
    "venue_name": "TU Wien",
}


# =============================================================================
# INSCRIPCIÓN
# =============================================================================


def test_register_participant_commits():
    print("\n🔍 Test: inscripción SQL")
    conn = ScriptedConnection(
        [
            {"person_id": 2},  # participante
            EVENT_ROW,  # evento FOR UPDATE
            None,  # sin inscripción previa
            {"current_registrations": 1},
            1,  # INSERT
            [DETAILS_ROW],
        ]
    )

    result = postgres_service.register_participant_for_event(conn, 2, 100, "VIP", now=NOW)

    assert result["success"] is True
    assert result["registration"] == DETAILS_ROW
    assert conn.commits == 1
    assert conn.rollbacks == 0

    insert_query, insert_params = conn.executed[4]
    assert "INSERT INTO Registration" in insert_query
    assert insert_params[:2] == (2, 100)
    assert insert_params[2].startswith("REG-2025-")
    assert insert_params[3:] == (NOW, "pending", "VIP")
    assert "FOR UPDATE" in conn.executed[1][0]
    print("   ✅ Commit con número de inscripción generado")


def test_register_unknown_participant_rolls_back():
    conn = ScriptedConnection([None])

    with pytest.raises(NotFoundError):
        postgres_service.register_participant_for_event(conn, 99, 100)
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_register_unknown_event_rolls_back():
    conn = ScriptedConnection([{"person_id": 2}, None])

    with pytest.raises(NotFoundError):
        postgres_service.register_participant_for_event(conn, 2, 999)
    assert conn.rollbacks == 1


def test_register_twice_is_rejected():
    conn = ScriptedConnection([{"person_id": 1}, EVENT_ROW, {"person_id": 1}])

    with pytest.raises(AlreadyRegisteredError):
        postgres_service.register_participant_for_event(conn, 1, 100)
    assert conn.rollbacks == 1
    assert len(conn.executed) == 3


def test_register_over_capacity_is_rejected():
    conn = ScriptedConnection(
        [{"person_id": 3}, EVENT_ROW, None, {"current_registrations": 2}]
    )

    with pytest.raises(CapacityExceededError):
        postgres_service.register_participant_for_event(conn, 3, 100)
    assert conn.rollbacks == 1
    assert not any("INSERT" in query for query, _ in conn.executed)


def test_event_without_capacity_limit():
    conn = ScriptedConnection(
        [
            {"person_id": 3},
            dict(EVENT_ROW, max_participants=None),
            None,
            {"current_registrations": 500},
            1,
            [],
        ]
    )

    result = postgres_service.register_participant_for_event(conn, 3, 100)
    assert result["success"] is True
    assert result["registration"] is None


def test_cancel_registration():
    conn = ScriptedConnection([1])
    result = postgres_service.cancel_registration(conn, 1, 100)

    assert result["success"] is True
    assert conn.commits == 1


def test_cancel_missing_registration():
    conn = ScriptedConnection([0])

    with pytest.raises(NotFoundError):
        postgres_service.cancel_registration(conn, 1, 999)
    assert conn.rollbacks == 1


# =============================================================================
# ENTREGA DE PROYECTOS
# =============================================================================

SUBMISSION_ROW = {
    "submission_id": 600,
    "project_name": "FoodShare",
    "team_member_ids": [1, 2],
    "team_members": "Ada Lovelace1, Ada Lovelace2",
}


def test_create_submission_inserts_team():
    print("\n🔍 Test: entrega de proyecto SQL")
    conn = ScriptedConnection(
        [
            [{"person_id": 1}, {"person_id": 2}],  # miembros existentes
            {"submission_id": 600},  # INSERT ... RETURNING
            1,  # Creates persona 1
            1,  # Creates persona 2
            [SUBMISSION_ROW],
        ]
    )

    result = postgres_service.create_submission(
        conn, "FoodShare", [1, 2, 1], technology_stack="Python", event_id=100, now=NOW
    )

    assert result["success"] is True
    assert result["submission"] == SUBMISSION_ROW
    assert conn.commits == 1
    assert conn.rollbacks == 0

    # Duplicados eliminados antes de consultar
    assert conn.executed[0][1] == ([1, 2],)
    insert_query, insert_params = conn.executed[1]
    assert "RETURNING submission_id" in insert_query
    assert insert_params == ("FoodShare", None, NOW, "Python", None, 100)
    assert [params for _, params in conn.executed[2:4]] == [(1, 600), (2, 600)]
    assert all("INSERT INTO Creates" in query for query, _ in conn.executed[2:4])
    print("   ✅ Submission y equipo en una sola transacción")


def test_create_submission_with_unknown_member_rolls_back():
    conn = ScriptedConnection([[{"person_id": 1}]])

    with pytest.raises(NotFoundError) as exc_info:
        postgres_service.create_submission(conn, "FoodShare", [1, 9])

    assert "9" in str(exc_info.value)
    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert not any("INSERT" in query for query, _ in conn.executed)


def test_create_submission_requires_name_and_team():
    conn = ScriptedConnection([])

    with pytest.raises(InvalidRequestError):
        postgres_service.create_submission(conn, "FoodShare", [])
    with pytest.raises(InvalidRequestError):
        postgres_service.create_submission(conn, "", [1])
    assert conn.executed == []


def test_delete_submission_removes_dependent_rows():
    conn = ScriptedConnection([2, 1, 1])

    result = postgres_service.delete_submission(conn, 500)

    assert result["success"] is True
    assert conn.commits == 1
    tables = [query.split()[2] for query, _ in conn.executed]
    assert tables == ["Creates", "Evaluates", "Submission"]


def test_delete_missing_submission_rolls_back():
    conn = ScriptedConnection([0, 0, 0])

    with pytest.raises(NotFoundError):
        postgres_service.delete_submission(conn, 999)
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_get_submission_not_found():
    with pytest.raises(NotFoundError):
        postgres_service.get_submission(ScriptedConnection([[]]), 999)


def test_get_all_submissions_newest_first():
    conn = ScriptedConnection([[SUBMISSION_ROW]])

    assert postgres_service.get_all_submissions(conn) == [SUBMISSION_ROW]
    query = conn.executed[0][0]
    assert "LEFT JOIN Creates" in query
    assert query.rstrip().endswith("ORDER BY s.submission_time DESC NULLS LAST")


# =============================================================================
# REPORTES Y ESTADÍSTICAS
# =============================================================================


def test_registration_report_filter():
    rows = [{"event_id": 100, "total_registrations": 1}]
    conn = ScriptedConnection([rows])

    data = postgres_service.get_registration_report(conn, "Hackathon")
    query, params = conn.executed[0]

    assert data == rows
    assert "WHERE he.event_type = %s" in query
    assert query.index("WHERE") < query.index("GROUP BY")
    assert params == ["Hackathon"]


def test_registration_report_without_filter():
    conn = ScriptedConnection([[]])
    postgres_service.get_registration_report(conn)
    query, params = conn.executed[0]

    assert "WHERE" not in query
    assert params == []


def test_workshop_report_filter():
    conn = ScriptedConnection([[]])
    postgres_service.get_workshop_report(conn, "Advanced")
    query, params = conn.executed[0]

    assert "WHERE w.skill_level = %s" in query
    assert query.rstrip().endswith("w.workshop_number")
    assert params == ["Advanced"]


def test_database_stats_counts_every_table():
    conn = ScriptedConnection([(n,) for n in range(len(config.SOURCE_TABLES))])
    stats = postgres_service.get_database_stats(conn)

    assert list(stats) == [table for table, _ in config.SOURCE_TABLES.values()]
    assert stats["Person"] == 0
    assert stats["Evaluates"] == 11


# =============================================================================
# LISTADOS
# =============================================================================


def test_get_all_events_with_occupancy():
    rows = [{"event_id": 100, "current_registrations": 1, "capacity_percentage": 50.0}]
    conn = ScriptedConnection([rows])

    assert postgres_service.get_all_events(conn) == rows
    query = conn.executed[0][0]
    assert "NULLIF(e.max_participants, 0)" in query
    assert query.rstrip().endswith("ORDER BY e.start_date ASC")


def test_get_all_participants():
    rows = [{"person_id": 1, "events_registered": 1}]
    conn = ScriptedConnection([rows])

    assert postgres_service.get_all_participants(conn) == rows
    assert "INNER JOIN Participant" in conn.executed[0][0]


def test_get_available_participants_excludes_registered():
    conn = ScriptedConnection([[{"person_id": 2}]])

    data = postgres_service.get_available_participants(conn, 100)
    query, params = conn.executed[0]

    assert data == [{"person_id": 2}]
    assert "NOT IN" in query
    assert params == (100,)
