"""Shared fixtures for the check-in service tests."""
from datetime import datetime

import pytest

from checkin import create_app, db
from checkin.models.lecture_session import LectureSession
from checkin.models.user import User, UserRole
from checkin.services import session_clock
from checkin.services.gps_service import LocationSample
from checkin.services.qr_service import QRService

# Anchor and clock shared by the scenarios
ANCHOR_LAT = 40.0
ANCHOR_LON = -75.0
SESSION_DATE = '2026-10-18'
NOW = datetime(2026, 10, 18, 9, 30)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the service clock to NOW."""
    monkeypatch.setattr(session_clock, 'local_now', lambda: NOW)
    return NOW

def _make_user(email, name, role, **extra):
    user = User(email=email, name=name, role=role, **extra)
    user.set_password('password123')
    return user.save()

@pytest.fixture
def lecturer(app):
    return _make_user('lecturer@example.com', 'Dr. Test Lecturer', UserRole.LECTURER)

@pytest.fixture
def student(app):
    return _make_user('student@example.com', 'Test Student', UserRole.STUDENT,
                      student_number='CS2026001')

@pytest.fixture
def other_student(app):
    return _make_user('other@example.com', 'Other Student', UserRole.STUDENT)

@pytest.fixture
def make_session(lecturer):
    """Factory for persisted sessions with a finalized QR token."""
    def factory(**overrides):
        fields = {
            'course_id': 'CS101',
            'course_name': 'Introduction to Computer Science',
            'lecturer_id': lecturer.id,
            'lecturer_name': lecturer.name,
            'room_location': 'Room 101',
            'latitude': ANCHOR_LAT,
            'longitude': ANCHOR_LON,
            'allowed_radius': 100,
            'date': SESSION_DATE,
            'start_time': '09:00',
            'end_time': '10:00',
            'pin': '123456',
            'is_active': True
        }
        fields.update(overrides)
        session = LectureSession(**fields)
        db.session.add(session)
        db.session.flush()
        session.qr_data = QRService.finalize(QRService.encode(fields), session.id)
        db.session.commit()
        return session
    return factory

@pytest.fixture
def session(make_session):
    return make_session()

def located(latitude, longitude):
    """Locator returning a fixed position."""
    return lambda: LocationSample(latitude=latitude, longitude=longitude, accuracy=5.0)

def login(client, email, password='password123'):
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    token = response.get_json()['data']['access_token']
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def lecturer_headers(client, lecturer):
    return login(client, lecturer.email)

@pytest.fixture
def student_headers(client, student):
    return login(client, student.email)
