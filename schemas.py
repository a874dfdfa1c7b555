"""
Registros tipados del schema relacional.

Cada modelo Pydantic representa una fila de una tabla PostgreSQL. Las filas
que devuelve psycopg2 (dicts) se validan aquí, en el borde de lectura, para
que el transformador trabaje sobre formas conocidas y no sobre acceso ad hoc
a claves.

Columnas desconocidas se ignoran. Las columnas DATE se mantienen como date
(la conversión a datetime para BSON ocurre al construir snapshots) y las
DECIMAL se convierten a float.
"""

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# DATE o TIMESTAMP según la revisión del schema
DateValue = Optional[Union[datetime, date]]


class SourceRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Person(SourceRecord):
    person_id: int = Field(..., description="PK, identidad raíz")
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class Participant(SourceRecord):
    person_id: int = Field(..., description="PK y FK → Person")
    registration_date: DateValue = None
    t_shirt_size: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    manager_id: Optional[int] = Field(None, description="FK → Participant (auto-referencia)")


class Judge(SourceRecord):
    person_id: int = Field(..., description="PK y FK → Person")
    expertise_area: Optional[str] = None
    years_experience: Optional[int] = None
    organization: Optional[str] = None


class Venue(SourceRecord):
    venue_id: int
    name: str
    address: Optional[str] = None
    capacity: Optional[int] = None
    facilities: Optional[str] = None


class HackathonEvent(SourceRecord):
    event_id: int
    name: str
    start_date: DateValue = None
    end_date: DateValue = None
    event_type: Optional[str] = None
    max_participants: Optional[int] = None
    venue_id: Optional[int] = Field(None, description="FK → Venue")


class Sponsor(SourceRecord):
    sponsor_id: int
    company_name: str
    industry: Optional[str] = None
    website: Optional[str] = None
    contribution_amount: Optional[float] = None


class Submission(SourceRecord):
    submission_id: int
    project_name: str
    description: Optional[str] = None
    submission_time: DateValue = None
    technology_stack: Optional[str] = None
    repository_url: Optional[str] = None
    event_id: Optional[int] = Field(None, description="FK → HackathonEvent (revisión posterior)")


class Workshop(SourceRecord):
    event_id: int = Field(..., description="FK → HackathonEvent, parte de la clave")
    workshop_number: int = Field(..., description="Número de workshop dentro del evento")
    title: str
    description: Optional[str] = None
    duration: Optional[int] = Field(None, description="Duración en minutos")
    skill_level: Optional[str] = None
    max_attendees: Optional[int] = None


class Registration(SourceRecord):
    person_id: int
    event_id: int
    registration_number: str
    registration_timestamp: DateValue = None
    payment_status: Optional[str] = None
    ticket_type: Optional[str] = None


class Supports(SourceRecord):
    sponsor_id: int
    event_id: int


class Creates(SourceRecord):
    person_id: int
    submission_id: int


class Evaluates(SourceRecord):
    person_id: int = Field(..., description="FK → Judge")
    submission_id: int
    score: Optional[float] = None
    feedback: Optional[str] = None
    evaluation_date: DateValue = None


class SourceSnapshot(BaseModel):
    """Los doce conjuntos de filas leídos en una migración."""

    people: List[Person] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    judges: List[Judge] = Field(default_factory=list)
    venues: List[Venue] = Field(default_factory=list)
    events: List[HackathonEvent] = Field(default_factory=list)
    sponsors: List[Sponsor] = Field(default_factory=list)
    submissions: List[Submission] = Field(default_factory=list)
    workshops: List[Workshop] = Field(default_factory=list)
    registrations: List[Registration] = Field(default_factory=list)
    supports: List[Supports] = Field(default_factory=list)
    creates: List[Creates] = Field(default_factory=list)
    evaluates: List[Evaluates] = Field(default_factory=list)


class RegistrationRequest(BaseModel):
    """Cuerpo de las peticiones de inscripción (SQL y NoSQL)."""

    person_id: int
    event_id: int
    ticket_type: str = Field("Standard", description="Standard|VIP|Student")
    payment_status: str = Field("pending", description="pending|completed")


class SubmissionRequest(BaseModel):
    """Cuerpo de POST /api/sql/submissions."""

    project_name: str
    team_member_ids: List[int] = Field(..., description="person_id de cada miembro del equipo")
    description: Optional[str] = None
    technology_stack: Optional[str] = None
    repository_url: Optional[str] = None
    event_id: Optional[int] = None
