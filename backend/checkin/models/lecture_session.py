"""Lecture session with its check-in roster."""
from typing import List
from checkin import db
from checkin.models.base import BaseModel

class LectureSession(BaseModel):
    """A timed lecture that students check in to by QR code or PIN."""
    
    __tablename__ = 'lecture_sessions'
    
    # Course
    course_id = db.Column(db.String(50), nullable=False, index=True)
    course_name = db.Column(db.String(255), nullable=False)
    
    # Owner
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    lecturer_name = db.Column(db.String(255), nullable=False)
    
    # Location anchor
    room_location = db.Column(db.String(255), nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    allowed_radius = db.Column(db.Float, nullable=True, default=100)  # meters
    
    # Schedule, wall-clock strings
    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)  # HH:MM
    
    # Check-in credentials
    pin = db.Column(db.String(6), nullable=False, index=True)
    qr_data = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Relationships
    lecturer = db.relationship('User', backref=db.backref('lecture_sessions', lazy='dynamic'))
    roster_entries = db.relationship(
        'RosterEntry',
        backref='session',
        order_by='RosterEntry.id',
        cascade='all, delete-orphan'
    )
    attendance_records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    
    @property
    def checked_in_students(self) -> List[int]:
        """Student ids in check-in order."""
        return [entry.student_id for entry in self.roster_entries]
    
    def has_checked_in(self, student_id: int) -> bool:
        return db.session.query(
            RosterEntry.query.filter_by(session_id=self.id, student_id=student_id).exists()
        ).scalar()
    
    def to_dict(self, include_secrets: bool = False) -> dict:
        """Convert to dictionary. PIN, token and roster are for the owner only."""
        exclude = [] if include_secrets else ['pin', 'qr_data']
        data = super().to_dict(exclude=exclude)
        data['checked_in_count'] = len(self.roster_entries)
        if include_secrets:
            data['checked_in_students'] = self.checked_in_students
        return data
    
    def __repr__(self):
        return f'<LectureSession {self.course_id} {self.date} {self.start_time}>'

class RosterEntry(db.Model):
    """One student on a session's roster; the pair is unique."""
    
    __tablename__ = 'session_roster'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_roster_session_student'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('lecture_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    
    def __repr__(self):
        return f'<RosterEntry {self.session_id}-{self.student_id}>'
