import os
import tempfile

# Set environment for testing before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("REPORTS_DIR", tempfile.mkdtemp(prefix="hospital-reports-"))

import pytest
from fastapi.testclient import TestClient

from hospital.main import app
from hospital.core.database import Base, SessionLocal, engine, get_redis, import_models
from hospital.core.security import UserRole, create_user_token, get_password_hash
from hospital.models.admin import Admin
from hospital.models.doctor import Doctor
from hospital.models.patient import Patient
from hospital.models.user import User
from hospital.services.storage import ReportStorage, get_report_storage

import_models()

TEST_PASSWORD = "TestPassword123"

class FakeRedis:
    """Just enough of the redis client for the login rate limiter."""

    def __init__(self):
        self.data = {}

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

class Directory:
    """Creates users with their role profiles and issues tokens for them."""

    def __init__(self, db, password_hash):
        self.db = db
        self.password_hash = password_hash

    def user(self, role, full_name, email=None, is_active=True):
        user = User(
            email=email or f"{full_name.lower().replace(' ', '.')}@example.com",
            password_hash=self.password_hash,
            full_name=full_name,
            phone_number="555-0100",
            role=role,
            is_active=is_active,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def patient(self, code="PAT001", full_name="Pat Patient"):
        user = self.user(UserRole.PATIENT, full_name)
        patient = Patient(user_id=user.id, patient_code=code)
        self.db.add(patient)
        self.db.commit()
        return patient

    def doctor(self, code="DR001", full_name="Dana Doctor", specialization="Cardiology"):
        user = self.user(UserRole.DOCTOR, full_name)
        doctor = Doctor(
            user_id=user.id,
            doctor_code=code,
            specialization=specialization,
            license_number=f"LIC-{code}",
            department="Medicine",
        )
        self.db.add(doctor)
        self.db.commit()
        return doctor

    def admin(self, employee_id="ADM001", full_name="Ada Admin"):
        user = self.user(UserRole.ADMIN, full_name)
        admin = Admin(user_id=user.id, employee_id=employee_id)
        self.db.add(admin)
        self.db.commit()
        return admin

    def headers(self, principal):
        user = principal if isinstance(principal, User) else principal.user
        token = create_user_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token.access_token}"}

@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(TEST_PASSWORD)

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db(test_db):
    session = SessionLocal()
    yield session
    session.close()

@pytest.fixture
def directory(db, password_hash):
    return Directory(db, password_hash)

@pytest.fixture
def fake_redis():
    return FakeRedis()

@pytest.fixture
def storage(tmp_path):
    return ReportStorage(str(tmp_path / "medical-reports"), "/uploads/medical-reports")

@pytest.fixture
def client(test_db, fake_redis, storage):
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_report_storage] = lambda: storage
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()
