"""
Servicio PostgreSQL - lógica de negocio sobre el schema relacional.

Responsabilidades:
- Caso de uso: inscribir participante en evento (transacción explícita)
- Cancelar inscripción
- Caso de uso: entregar proyecto (Submission + Creates) y eliminarlo
- Reportes analíticos: inscripciones por evento y workshops por nivel
- Listados y estadísticas por tabla

Todas las funciones reciben una conexión psycopg2. Las que escriben hacen
commit al terminar y rollback ante cualquier error.
"""

from datetime import datetime

from psycopg2.extras import RealDictCursor

import config
from services.common import generate_registration_number
from services.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    InvalidRequestError,
    NotFoundError,
)


def _fetchall(conn, query, params=None):
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]


# =============================================================================
# CONSULTAS
# =============================================================================


def get_all_events(conn):
    """Eventos con venue, inscripciones actuales y porcentaje de ocupación."""
    return _fetchall(
        conn,
        """
        SELECT
            e.event_id, e.name, e.start_date, e.end_date, e.event_type, e.max_participants,
            v.name AS venue_name,
            v.address AS venue_address,
            COUNT(r.person_id) AS current_registrations,
            ROUND(COUNT(r.person_id) * 100.0 / NULLIF(e.max_participants, 0), 2) AS capacity_percentage
        FROM HackathonEvent e
        LEFT JOIN Venue v ON e.venue_id = v.venue_id
        LEFT JOIN Registration r ON e.event_id = r.event_id
        GROUP BY e.event_id, v.name, v.address
        ORDER BY e.start_date ASC
        """,
    )


def get_all_participants(conn):
    return _fetchall(
        conn,
        """
        SELECT
            p.person_id, p.first_name, p.last_name, p.email,
            pt.registration_date, pt.t_shirt_size,
            COUNT(r.event_id) AS events_registered
        FROM Person p
        INNER JOIN Participant pt ON p.person_id = pt.person_id
        LEFT JOIN Registration r ON pt.person_id = r.person_id
        GROUP BY p.person_id, pt.registration_date, pt.t_shirt_size
        ORDER BY p.last_name, p.first_name
        """,
    )


def get_available_participants(conn, event_id):
    """Participantes todavía no inscritos en el evento (para el formulario de inscripción)."""
    return _fetchall(
        conn,
        """
        SELECT p.person_id, p.first_name, p.last_name, p.email
        FROM Participant pt
        INNER JOIN Person p ON pt.person_id = p.person_id
        WHERE pt.person_id NOT IN (
            SELECT person_id FROM Registration WHERE event_id = %s
        )
        ORDER BY p.last_name, p.first_name
        """,
        (event_id,),
    )


def get_database_stats(conn):
    """Conteo de filas por tabla de origen."""
    stats = {}
    with conn.cursor() as cursor:
        for table, _ in config.SOURCE_TABLES.values():
            cursor.execute(f"SELECT COUNT(*) FROM {table}")
            stats[table] = cursor.fetchone()[0]
    return stats


# =============================================================================
# CASO DE USO: INSCRIBIR PARTICIPANTE EN EVENTO
# =============================================================================


def register_participant_for_event(
    conn, person_id, event_id, ticket_type="Standard", payment_status="pending", now=None
):
    """
    Inscribe un participante en un evento dentro de una transacción.

    Flujo:
    1. Validar que el participante existe
    2. Validar que el evento existe (fila bloqueada FOR UPDATE para que la
       verificación de capacidad no compita con otra inscripción)
    3. Verificar que no está inscrito
    4. Verificar capacidad
    5. Insertar Registration y hacer commit

    Entidades: Person, Participant, HackathonEvent, Venue, Registration

    Returns:
        dict: {'success': True, 'message': str, 'registration': {...}}

    Raises:
        NotFoundError, AlreadyRegisteredError, CapacityExceededError
    """
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(
                "SELECT person_id FROM Participant WHERE person_id = %s", (person_id,)
            )
            if cursor.fetchone() is None:
                raise NotFoundError("Participante no encontrado")

            cursor.execute(
                "SELECT event_id, name, max_participants FROM HackathonEvent "
                "WHERE event_id = %s FOR UPDATE",
                (event_id,),
            )
            event = cursor.fetchone()
            if event is None:
                raise NotFoundError("Evento no encontrado")

            cursor.execute(
                "SELECT person_id FROM Registration WHERE person_id = %s AND event_id = %s",
                (person_id, event_id),
            )
            if cursor.fetchone() is not None:
                raise AlreadyRegisteredError("El participante ya está inscrito en este evento")

            cursor.execute(
                "SELECT COUNT(*) AS current_registrations FROM Registration WHERE event_id = %s",
                (event_id,),
            )
            current = cursor.fetchone()["current_registrations"]
            if event["max_participants"] is not None and current >= event["max_participants"]:
                raise CapacityExceededError("El evento alcanzó su capacidad máxima")

            now = now or datetime.now()
            cursor.execute(
                """
                INSERT INTO Registration
                    (person_id, event_id, registration_number, registration_timestamp,
                     payment_status, ticket_type)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    person_id,
                    event_id,
                    generate_registration_number(now),
                    now,
                    payment_status,
                    ticket_type,
                ),
            )
        conn.commit()
    except Exception:
        conn.rollback()
        raise

    registration = _fetchall(
        conn,
        """
        SELECT
            r.person_id, r.event_id,
            r.registration_number, r.registration_timestamp, r.payment_status, r.ticket_type,
            p.first_name, p.last_name, p.email,
            e.name AS event_name, e.start_date, e.end_date,
            v.name AS venue_name
        FROM Registration r
        INNER JOIN Person p ON r.person_id = p.person_id
        INNER JOIN HackathonEvent e ON r.event_id = e.event_id
        LEFT JOIN Venue v ON e.venue_id = v.venue_id
        WHERE r.person_id = %s AND r.event_id = %s
        """,
        (person_id, event_id),
    )
    return {
        "success": True,
        "message": "Inscripción exitosa",
        "registration": registration[0] if registration else None,
    }


def cancel_registration(conn, person_id, event_id):
    """
    Elimina una inscripción.

    Raises:
        NotFoundError: Si la inscripción no existe
    """
    try:
        with conn.cursor() as cursor:
            cursor.execute(
                "DELETE FROM Registration WHERE person_id = %s AND event_id = %s",
                (person_id, event_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Inscripción no encontrada")
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return {"success": True, "message": "Inscripción cancelada"}


# =============================================================================
# CASO DE USO: ENTREGAR PROYECTO (SUBMISSION + EQUIPO)
# =============================================================================

SUBMISSION_DETAILS_QUERY = """
    SELECT
        s.submission_id, s.project_name, s.description, s.submission_time,
        s.technology_stack, s.repository_url, s.event_id,
        ARRAY_AGG(DISTINCT c.person_id) FILTER (WHERE c.person_id IS NOT NULL)
            AS team_member_ids,
        STRING_AGG(DISTINCT p.first_name || ' ' || p.last_name, ', ') AS team_members
    FROM Submission s
    LEFT JOIN Creates c ON s.submission_id = c.submission_id
    LEFT JOIN Person p ON c.person_id = p.person_id
"""


def get_all_submissions(conn):
    """Submissions con los nombres del equipo, más recientes primero."""
    return _fetchall(
        conn,
        SUBMISSION_DETAILS_QUERY
        + " GROUP BY s.submission_id ORDER BY s.submission_time DESC NULLS LAST",
    )


def get_submission(conn, submission_id):
    """
    Raises:
        NotFoundError: Si la submission no existe
    """
    rows = _fetchall(
        conn,
        SUBMISSION_DETAILS_QUERY + " WHERE s.submission_id = %s GROUP BY s.submission_id",
        (submission_id,),
    )
    if not rows:
        raise NotFoundError("Submission no encontrada")
    return rows[0]


def create_submission(
    conn,
    project_name,
    team_member_ids,
    description=None,
    technology_stack=None,
    repository_url=None,
    event_id=None,
    now=None,
):
    """
    Crea una submission y sus filas Creates (equipo) en una sola transacción.

    Flujo:
    1. Validar nombre de proyecto y equipo no vacío
    2. Validar que todos los miembros son participantes
    3. Insertar Submission (RETURNING submission_id)
    4. Insertar una fila Creates por miembro y hacer commit

    Entidades: Submission, Creates, Participant, Person

    Returns:
        dict: {'success': True, 'message': str, 'submission': {...}}

    Raises:
        InvalidRequestError, NotFoundError
    """
    if not project_name or not team_member_ids:
        raise InvalidRequestError("Se requiere nombre de proyecto y al menos un miembro")

    # Orden de entrada, sin duplicados (PK de Creates)
    team = list(dict.fromkeys(team_member_ids))

    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(
                "SELECT person_id FROM Participant WHERE person_id = ANY(%s)", (team,)
            )
            found = {row["person_id"] for row in cursor.fetchall()}
            missing = [person_id for person_id in team if person_id not in found]
            if missing:
                raise NotFoundError(f"Participantes no encontrados: {missing}")

            cursor.execute(
                """
                INSERT INTO Submission
                    (project_name, description, submission_time, technology_stack,
                     repository_url, event_id)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING submission_id
                """,
                (
                    project_name,
                    description,
                    now or datetime.now(),
                    technology_stack,
                    repository_url,
                    event_id,
                ),
            )
            submission_id = cursor.fetchone()["submission_id"]

            for person_id in team:
                cursor.execute(
                    "INSERT INTO Creates (person_id, submission_id) VALUES (%s, %s)",
                    (person_id, submission_id),
                )
        conn.commit()
    except Exception:
        conn.rollback()
        raise

    return {
        "success": True,
        "message": "Proyecto entregado",
        "submission": get_submission(conn, submission_id),
    }


def delete_submission(conn, submission_id):
    """
    Elimina una submission con sus filas Creates y Evaluates.

    Raises:
        NotFoundError: Si la submission no existe (nada se borra)
    """
    try:
        with conn.cursor() as cursor:
            cursor.execute("DELETE FROM Creates WHERE submission_id = %s", (submission_id,))
            cursor.execute("DELETE FROM Evaluates WHERE submission_id = %s", (submission_id,))
            cursor.execute("DELETE FROM Submission WHERE submission_id = %s", (submission_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Submission no encontrada")
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return {"success": True, "message": "Submission eliminada"}


# =============================================================================
# REPORTES ANALÍTICOS
# =============================================================================


def get_registration_report(conn, event_type=None):
    """
    Estadísticas de inscripción por evento.

    - Involucra Person, Participant, HackathonEvent, Venue, Registration
    - Filtro opcional: event_type
    - Los resultados cambian después de ejecutar el caso de uso
    """
    query = """
        SELECT
            he.event_id,
            he.name AS event_name,
            he.event_type,
            he.start_date,
            he.end_date,
            he.max_participants,

            v.name AS venue_name,
            v.address AS venue_address,
            v.capacity AS venue_capacity,

            COUNT(r.registration_number) AS total_registrations,
            ROUND(COUNT(r.registration_number) * 100.0 / NULLIF(he.max_participants, 0), 2)
                AS capacity_percentage,

            COUNT(*) FILTER (WHERE r.payment_status = 'completed') AS paid_registrations,
            COUNT(*) FILTER (WHERE r.payment_status = 'pending') AS pending_payments,

            COUNT(*) FILTER (WHERE r.ticket_type = 'Standard') AS standard_tickets,
            COUNT(*) FILTER (WHERE r.ticket_type = 'VIP') AS vip_tickets,
            COUNT(*) FILTER (WHERE r.ticket_type = 'Student') AS student_tickets,

            STRING_AGG(
                p.first_name || ' ' || p.last_name || ' (' || r.ticket_type || ')',
                '; ' ORDER BY r.registration_timestamp
            ) AS registered_participants

        FROM HackathonEvent he
        LEFT JOIN Venue v ON he.venue_id = v.venue_id
        LEFT JOIN Registration r ON he.event_id = r.event_id
        LEFT JOIN Person p ON r.person_id = p.person_id
    """
    params = []

    if event_type:
        query += " WHERE he.event_type = %s"
        params.append(event_type)

    query += """
        GROUP BY he.event_id, v.name, v.address, v.capacity
        ORDER BY he.start_date DESC, total_registrations DESC
    """
    return _fetchall(conn, query, params)


def get_workshop_report(conn, skill_level=None):
    """Workshops con su evento y venue, ordenados por fecha de inicio del evento."""
    query = """
        SELECT
            e.event_id,
            e.name AS event_name,
            e.start_date,
            v.name AS venue_name,
            w.workshop_number, w.title, w.duration, w.skill_level, w.max_attendees
        FROM Workshop w
        INNER JOIN HackathonEvent e ON w.event_id = e.event_id
        LEFT JOIN Venue v ON e.venue_id = v.venue_id
    """
    params = []

    if skill_level:
        query += " WHERE w.skill_level = %s"
        params.append(skill_level)

    query += " ORDER BY e.start_date ASC, e.event_id, w.workshop_number"
    return _fetchall(conn, query, params)
