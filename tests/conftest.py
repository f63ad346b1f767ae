import os
import sys

# Settings são lidas no import: define o ambiente de teste antes de qualquer import do app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add the current directory to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import cras_agenda.db.base  # noqa: F401  (registra todas as models)
from cras_agenda.core.security import hash_password
from cras_agenda.db.base_class import Base
from cras_agenda.models.appointment import Appointment, AppointmentStatus, Motivo
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import Role, User
from helpers import PASSWORD, VALID_CPF


# Create an in-memory SQLite database for testing
@pytest.fixture
def engine():
    """Banco SQLite em memória, recriado a cada teste."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def TestingSessionLocal(engine):
    """Create a session factory for the test database."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


# Override the database dependency to use our test database
@pytest.fixture
def override_get_db(TestingSessionLocal):
    """Override the database dependency to use our test database."""
    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()
    return _override_get_db


@pytest.fixture
def db_session(TestingSessionLocal):
    """Create a database session for each test."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(override_get_db):
    """Create a test client for API tests."""
    from fastapi.testclient import TestClient
    from cras_agenda.main import app
    from cras_agenda.db import get_db

    # Override the database dependency
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clear overrides after test
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Faz login pela API e devolve os headers de autorização."""
    def _login(matricula: str, password: str = PASSWORD) -> dict[str, str]:
        response = client.post(
            "/api/v1/auth/login",
            json={"matricula": matricula, "password": password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login


def _make_cras(db, nome: str) -> Cras:
    cras = Cras(nome=nome, endereco=f"Rua do {nome}, 10", telefone="4133330000")
    db.add(cras)
    db.commit()
    db.refresh(cras)
    return cras


def _make_user(db, *, name: str, matricula: str, role: Role, cras: Cras | None) -> User:
    user = User(
        name=name,
        matricula=matricula,
        password_hash=hash_password(PASSWORD),
        role=role,
        cras_id=cras.id if cras else None,
        is_active=True,
    )
    if role != Role.ENTREVISTADOR:
        # mesmo formato gravado pela API: só entrevistador tem agenda
        user.horarios_disponiveis = []
        user.dias_atendimento = []
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def cras_a(db_session):
    return _make_cras(db_session, "CRAS Centro")


@pytest.fixture
def cras_b(db_session):
    return _make_cras(db_session, "CRAS Norte")


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, name="Admin Geral", matricula="A001", role=Role.ADMIN, cras=None)


@pytest.fixture
def entrevistador(db_session, cras_a):
    return _make_user(
        db_session, name="Ana Entrevistadora", matricula="E001", role=Role.ENTREVISTADOR, cras=cras_a
    )


@pytest.fixture
def entrevistador_b(db_session, cras_b):
    return _make_user(
        db_session, name="Bruno Entrevistador", matricula="E002", role=Role.ENTREVISTADOR, cras=cras_b
    )


@pytest.fixture
def recepcao(db_session, cras_a):
    return _make_user(
        db_session, name="Rita Recepção", matricula="R001", role=Role.RECEPCAO, cras=cras_a
    )


@pytest.fixture
def make_appointment(db_session):
    """Cria agendamento direto no banco (sem passar pelas regras da API)."""
    def _make(
        entrevistador: User,
        when: datetime,
        *,
        pessoa: str = "Maria da Silva",
        status: AppointmentStatus = AppointmentStatus.AGENDADO,
        cpf: str = VALID_CPF,
        telefone1: str = "41999998888",
        motivo: Motivo = Motivo.INCLUSAO,
    ) -> Appointment:
        appt = Appointment(
            entrevistador_id=entrevistador.id,
            cras_id=entrevistador.cras_id,
            pessoa=pessoa,
            cpf=cpf,
            telefone1=telefone1,
            motivo=motivo,
            data=when,
            status=status,
            created_by_id=entrevistador.id,
        )
        db_session.add(appt)
        db_session.commit()
        db_session.refresh(appt)
        return appt
    return _make
