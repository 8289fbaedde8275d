"""Database seeding service for demo data."""
from datetime import datetime, timedelta
from typing import List

from checkin import db
from checkin.models.user import User, UserRole
from checkin.services.gps_service import LocationSample
from checkin.services.session_service import SessionService

class SeedService:
    """Service to seed database with demo data."""
    
    LECTURER_EMAIL = 'lecturer@university.edu'
    STUDENT_EMAIL = 'student@university.edu'
    DEMO_PASSWORD = 'password123'
    
    # Anchor used for the demo session
    DEMO_LATITUDE = 40.0
    DEMO_LONGITUDE = -75.0
    
    @staticmethod
    def seed_all() -> List[str]:
        """Seed all demo data and describe what was created."""
        lecturer = SeedService.seed_user(
            SeedService.LECTURER_EMAIL, 'Dr. Ada Lovelace', UserRole.LECTURER
        )
        student = SeedService.seed_user(
            SeedService.STUDENT_EMAIL, 'Grace Hopper', UserRole.STUDENT,
            student_number='CS2026001'
        )
        session = SeedService.seed_session(lecturer)
        
        return [
            f'Lecturer: {lecturer.email} / {SeedService.DEMO_PASSWORD}',
            f'Student: {student.email} / {SeedService.DEMO_PASSWORD}',
            f'Session {session.id}: {session.course_id} {session.date} '
            f'{session.start_time}-{session.end_time} PIN {session.pin}'
        ]
    
    @staticmethod
    def seed_user(email: str, name: str, role: UserRole, student_number: str = None) -> User:
        user = User.query.filter_by(email=email).first()
        if user:
            return user
        
        user = User(email=email, name=name, role=role, student_number=student_number)
        user.set_password(SeedService.DEMO_PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user
    
    @staticmethod
    def seed_session(lecturer: User):
        """Create a session running from an hour ago to an hour from now."""
        now = datetime.now()
        start = max(now - timedelta(hours=1), now.replace(hour=0, minute=0))
        end = min(now + timedelta(hours=1), now.replace(hour=23, minute=59))
        
        return SessionService.create_session(
            lecturer,
            {
                'course_id': 'CS101',
                'course_name': 'Introduction to Computer Science',
                'room_location': 'Room 101, Building A',
                'date': now.strftime('%Y-%m-%d'),
                'start_time': start.strftime('%H:%M'),
                'end_time': end.strftime('%H:%M')
            },
            LocationSample(latitude=SeedService.DEMO_LATITUDE, longitude=SeedService.DEMO_LONGITUDE)
        )
