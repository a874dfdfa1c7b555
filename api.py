"""
API HTTP del sistema de hackathons (adaptador fino sobre services/).

Endpoints NoSQL:
    GET  /api/nosql/events         Eventos con venue, workshops e inscripciones
    GET  /api/nosql/participants   Participantes con sus inscripciones
    POST /api/nosql/migrate        Migración completa PostgreSQL → MongoDB
    GET  /api/nosql/stats          Conteos por colección + workshops embebidos
    POST /api/nosql/registrations  Caso de uso de inscripción
    GET  /api/nosql/analytics      Reporte de inscripciones (?event_type=)
    GET  /api/nosql/workshops      Reporte de workshops (?skill_level=)

Endpoints SQL:
    GET    /api/sql/events
    GET    /api/sql/participants
    GET    /api/sql/registrations/available/{event_id}
    POST   /api/sql/registrations
    DELETE /api/sql/registrations/{person_id}/{event_id}
    GET    /api/sql/analytics
    GET    /api/sql/workshops
    GET    /api/sql/stats
    GET    /api/sql/submissions[/{submission_id}]
    POST   /api/sql/submissions
    DELETE /api/sql/submissions/{submission_id}

Uso:
    uvicorn api:app --reload
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
import database
from schemas import RegistrationRequest, SubmissionRequest
from services import mongodb_service, postgres_service
from services.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    DocumentStoreUnavailableError,
    InvalidRequestError,
    NotFoundError,
)


@asynccontextmanager
async def lifespan(app):
    yield
    database.close_connections()


app = FastAPI(title="Hackathon Dual-Store API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencias

def get_pg_pool():
    return database.get_pg_pool()


def get_pg_connection(pool=Depends(get_pg_pool)):
    conn = pool.getconn()
    try:
        yield conn
    finally:
        pool.putconn(conn)


def get_mongo_db():
    return database.get_mongo_db()


def require_mongo_db(db=Depends(get_mongo_db)):
    if db is None:
        raise DocumentStoreUnavailableError("MongoDB no conectado")
    return db


# Errores de negocio → códigos HTTP

def _error_response(status_code, exc):
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


@app.exception_handler(NotFoundError)
def not_found_handler(request, exc):
    return _error_response(404, exc)


@app.exception_handler(AlreadyRegisteredError)
@app.exception_handler(CapacityExceededError)
@app.exception_handler(InvalidRequestError)
def conflict_handler(request, exc):
    return _error_response(400, exc)


@app.exception_handler(DocumentStoreUnavailableError)
def unavailable_handler(request, exc):
    return _error_response(503, exc)


@app.get("/health")
def health():
    return {"ok": True}


# NoSQL

@app.post("/api/nosql/migrate")
def migrate(policy: Optional[str] = None, db=Depends(require_mongo_db)):
    pool = None
    try:
        # Pool propio: las lecturas concurrentes no usan conexiones del pool compartido
        pool = database.create_migration_pool()
        return mongodb_service.migrate_from_relational(pool, db, policy=policy)
    except Exception as e:
        print(f"❌ Error durante la migración: {e}", file=sys.stderr)
        return _error_response(500, e)
    finally:
        if pool is not None:
            pool.closeall()


@app.get("/api/nosql/events")
def nosql_events(db=Depends(require_mongo_db)):
    return {"success": True, "data": mongodb_service.get_all_events(db)}


@app.get("/api/nosql/participants")
def nosql_participants(db=Depends(require_mongo_db)):
    return {"success": True, "data": mongodb_service.get_all_participants(db)}


@app.get("/api/nosql/stats")
def nosql_stats(policy: Optional[str] = None, db=Depends(require_mongo_db)):
    try:
        stats = mongodb_service.get_collection_stats(db, policy=policy)
    except KeyError as e:
        return _error_response(400, e.args[0])
    return {"success": True, "stats": stats}


@app.post("/api/nosql/registrations", status_code=201)
def nosql_register(body: RegistrationRequest, db=Depends(require_mongo_db)):
    return mongodb_service.register_participant_for_event(
        db, body.person_id, body.event_id, body.ticket_type, body.payment_status
    )


@app.get("/api/nosql/analytics")
def nosql_analytics(event_type: Optional[str] = None, db=Depends(require_mongo_db)):
    return {"success": True, "data": mongodb_service.get_registration_report(db, event_type)}


@app.get("/api/nosql/workshops")
def nosql_workshops(skill_level: Optional[str] = None, db=Depends(require_mongo_db)):
    return {"success": True, "data": mongodb_service.get_workshop_report(db, skill_level)}


# SQL

@app.get("/api/sql/events")
def sql_events(conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_all_events(conn)}


@app.get("/api/sql/participants")
def sql_participants(conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_all_participants(conn)}


@app.get("/api/sql/registrations/available/{event_id}")
def sql_available_participants(event_id: int, conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_available_participants(conn, event_id)}


@app.post("/api/sql/registrations", status_code=201)
def sql_register(body: RegistrationRequest, conn=Depends(get_pg_connection)):
    return postgres_service.register_participant_for_event(
        conn, body.person_id, body.event_id, body.ticket_type, body.payment_status
    )


@app.delete("/api/sql/registrations/{person_id}/{event_id}")
def sql_cancel_registration(person_id: int, event_id: int, conn=Depends(get_pg_connection)):
    return postgres_service.cancel_registration(conn, person_id, event_id)


@app.get("/api/sql/analytics")
def sql_analytics(event_type: Optional[str] = None, conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_registration_report(conn, event_type)}


@app.get("/api/sql/workshops")
def sql_workshops(skill_level: Optional[str] = None, conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_workshop_report(conn, skill_level)}


@app.get("/api/sql/stats")
def sql_stats(conn=Depends(get_pg_connection)):
    return {"success": True, "stats": postgres_service.get_database_stats(conn)}


@app.get("/api/sql/submissions")
def sql_submissions(conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_all_submissions(conn)}


@app.get("/api/sql/submissions/{submission_id}")
def sql_submission(submission_id: int, conn=Depends(get_pg_connection)):
    return {"success": True, "data": postgres_service.get_submission(conn, submission_id)}


@app.post("/api/sql/submissions", status_code=201)
def sql_create_submission(body: SubmissionRequest, conn=Depends(get_pg_connection)):
    return postgres_service.create_submission(
        conn,
        body.project_name,
        body.team_member_ids,
        description=body.description,
        technology_stack=body.technology_stack,
        repository_url=body.repository_url,
        event_id=body.event_id,
    )


@app.delete("/api/sql/submissions/{submission_id}")
def sql_delete_submission(submission_id: int, conn=Depends(get_pg_connection)):
    return postgres_service.delete_submission(conn, submission_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
