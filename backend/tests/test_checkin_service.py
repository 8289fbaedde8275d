"""Tests for the check-in verification pipeline."""
import json
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from checkin import db
from checkin.models.attendance import AttendanceRecord, VerificationMethod, AttendanceStatus
from checkin.models.lecture_session import RosterEntry
from checkin.services.checkin_service import CheckInService, CheckInContext, RejectionReason
from checkin.services.errors import LocationUnavailableError
from checkin.services.qr_service import QRService

from conftest import NOW, ANCHOR_LAT, ANCHOR_LON, located

NEARBY = located(40.0003, -75.0)  # about 33 m from the anchor
FAR_AWAY = located(40.01, -75.0)  # about 1.1 km from the anchor

def record_count():
    return AttendanceRecord.query.count()

def roster_count():
    return RosterEntry.query.count()

@pytest.fixture
def context(student):
    return CheckInContext.from_user(student)

# =================== QR PATH ===================

def test_qr_check_in_accepted_then_duplicate_rejected(session, context):
    result = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)

    assert result.accepted
    assert result.reason is None
    record = result.record
    assert record.session_id == session.id
    assert record.student_id == context.student_id
    assert record.student_name == 'Test Student'
    assert record.course_id == 'CS101'
    assert record.course_name == 'Introduction to Computer Science'
    assert record.status == AttendanceStatus.PRESENT
    assert record.verification_method == VerificationMethod.QR
    assert record.latitude == 40.0003
    assert record.longitude == -75.0
    assert session.checked_in_students == [context.student_id]
    assert record_count() == 1

    repeat = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)

    assert not repeat.accepted
    assert repeat.reason == RejectionReason.ALREADY_CHECKED_IN
    assert session.checked_in_students == [context.student_id]
    assert record_count() == 1

def test_qr_check_in_out_of_range(session, context):
    result = CheckInService.check_in_with_qr(session.qr_data, context, FAR_AWAY, now=NOW)

    assert not result.accepted
    assert result.reason == RejectionReason.OUT_OF_RANGE
    assert result.distance == pytest.approx(1112, abs=1)
    assert record_count() == 0
    assert roster_count() == 0

@pytest.mark.parametrize('now', [
    datetime(2026, 10, 18, 8, 59),
    datetime(2026, 10, 18, 10, 1),
    datetime(2026, 10, 19, 9, 30),
])
def test_qr_check_in_outside_window_writes_nothing(session, context, now):
    def locate():
        raise AssertionError("location must not be requested")

    result = CheckInService.check_in_with_qr(session.qr_data, context, locate, now=now)

    assert result.reason == RejectionReason.SESSION_NOT_ACTIVE
    assert record_count() == 0
    assert roster_count() == 0

def test_qr_check_in_at_end_time_is_accepted(session, context):
    result = CheckInService.check_in_with_qr(
        session.qr_data, context, NEARBY, now=datetime(2026, 10, 18, 10, 0)
    )
    assert result.accepted

def test_qr_malformed_token(session, context):
    result = CheckInService.check_in_with_qr('definitely not json', context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.MALFORMED_TOKEN
    assert result.message == 'Invalid QR code format'

def test_qr_invalid_payload(session, context):
    payload = json.loads(session.qr_data)
    del payload['pin']

    result = CheckInService.check_in_with_qr(json.dumps(payload), context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.INVALID_PAYLOAD
    assert record_count() == 0

def test_qr_location_unavailable(session, context):
    result = CheckInService.check_in_with_qr(session.qr_data, context, lambda: None, now=NOW)
    assert result.reason == RejectionReason.LOCATION_UNAVAILABLE

def test_qr_location_error_is_surfaced(session, context):
    def locate():
        raise LocationUnavailableError("GPS timed out")

    result = CheckInService.check_in_with_qr(session.qr_data, context, locate, now=NOW)

    assert result.reason == RejectionReason.LOCATION_UNAVAILABLE
    assert result.message == 'GPS timed out'

def test_qr_placeholder_token_never_resolves(session, context):
    draft_token = json.loads(session.qr_data)
    draft_token['sessionId'] = 'temp_id'

    result = CheckInService.check_in_with_qr(json.dumps(draft_token), context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.SESSION_NOT_FOUND
    assert record_count() == 0

def test_qr_unknown_session(session, context):
    token = QRService.finalize(session.qr_data, 9999)
    result = CheckInService.check_in_with_qr(token, context, NEARBY, now=NOW)
    assert result.reason == RejectionReason.SESSION_NOT_FOUND

def test_qr_session_id_beyond_key_range_is_not_found(session, context):
    token = QRService.finalize(session.qr_data, 10**30)

    result = CheckInService.check_in_with_qr(token, context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.SESSION_NOT_FOUND
    assert record_count() == 0

def test_qr_token_pointing_at_another_session_is_rejected(make_session, context):
    first = make_session()
    other = make_session(course_id='CS102', pin='654321')
    token = QRService.finalize(first.qr_data, other.id)

    result = CheckInService.check_in_with_qr(token, context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.INVALID_PAYLOAD
    assert other.checked_in_students == []
    assert record_count() == 0

@pytest.mark.parametrize('field, value, now', [
    ('date', '2026-10-17', datetime(2026, 10, 17, 9, 30)),
    ('startTime', '08:30', NOW),
])
def test_qr_schedule_must_match_session(session, context, field, value, now):
    payload = json.loads(session.qr_data)
    payload[field] = value

    result = CheckInService.check_in_with_qr(json.dumps(payload), context, NEARBY, now=now)

    assert result.reason == RejectionReason.INVALID_PAYLOAD
    assert record_count() == 0

def test_qr_ended_session_is_not_active(session, context):
    session.is_active = False
    db.session.commit()

    result = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.SESSION_NOT_ACTIVE
    assert record_count() == 0

def test_qr_token_without_end_time_uses_live_session(session, context):
    payload = json.loads(session.qr_data)
    del payload['endTime']
    token = json.dumps(payload)

    assert CheckInService.check_in_with_qr(
        token, context, NEARBY, now=datetime(2026, 10, 18, 10, 1)
    ).reason == RejectionReason.SESSION_NOT_ACTIVE
    assert CheckInService.check_in_with_qr(token, context, NEARBY, now=NOW).accepted

def test_qr_token_without_radius_uses_default(make_session, context):
    session = make_session(allowed_radius=500)
    payload = json.loads(session.qr_data)
    del payload['allowedRadius']

    # 150 m away: inside the session radius but outside the 100 m default
    result = CheckInService.check_in_with_qr(
        json.dumps(payload), context, located(40.00135, -75.0), now=NOW
    )
    assert result.reason == RejectionReason.OUT_OF_RANGE

def test_roster_keeps_check_in_order(session, student, other_student):
    for user in (other_student, student):
        result = CheckInService.check_in_with_qr(
            session.qr_data, CheckInContext.from_user(user), NEARBY, now=NOW
        )
        assert result.accepted

    assert session.checked_in_students == [other_student.id, student.id]
    assert record_count() == 2

def test_unique_constraint_catches_concurrent_duplicate(session, context, monkeypatch):
    """Two attempts that both pass the read check cannot both commit."""
    assert CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW).accepted

    # Simulate the race: the second attempt reads a stale roster
    monkeypatch.setattr(type(session), 'has_checked_in', lambda self, student_id: False)
    result = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)

    assert result.reason == RejectionReason.ALREADY_CHECKED_IN
    assert record_count() == 1
    assert roster_count() == 1

def test_store_failure_is_persistence_failed(session, context, monkeypatch):
    def broken_commit():
        raise OperationalError('COMMIT', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    result = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)
    monkeypatch.undo()

    assert result.reason == RejectionReason.PERSISTENCE_FAILED
    assert record_count() == 0
    assert roster_count() == 0

def test_result_to_dict(session, context):
    accepted = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW).to_dict()
    assert accepted['accepted'] is True
    assert accepted['reason'] is None
    assert accepted['record']['verification_method'] == 'qr'

    rejected = CheckInService.check_in_with_qr(session.qr_data, context, FAR_AWAY, now=NOW).to_dict()
    assert rejected['accepted'] is False
    assert rejected['record'] is None

# =================== PIN PATH ===================

def test_pin_check_in_by_lookup(session, context):
    result = CheckInService.check_in_with_pin('123456', context, NEARBY, now=NOW)

    assert result.accepted
    assert result.record.verification_method == VerificationMethod.PIN
    assert session.checked_in_students == [context.student_id]

def test_pin_check_in_with_session_id(session, context):
    result = CheckInService.check_in_with_pin(
        ' 123456 ', context, NEARBY, session_id=session.id, now=NOW
    )
    assert result.accepted

def test_pin_wrong_pin(session, context):
    result = CheckInService.check_in_with_pin('000000', context, NEARBY, now=NOW)
    assert result.reason == RejectionReason.SESSION_NOT_FOUND

    result = CheckInService.check_in_with_pin('000000', context, NEARBY, session_id=session.id, now=NOW)
    assert result.reason == RejectionReason.SESSION_NOT_FOUND

def test_pin_empty(session, context):
    assert CheckInService.check_in_with_pin('', context, NEARBY, now=NOW).reason == \
        RejectionReason.SESSION_NOT_FOUND

def test_pin_lookup_ignores_sessions_outside_window(session, context):
    result = CheckInService.check_in_with_pin(
        '123456', context, NEARBY, now=datetime(2026, 10, 18, 11, 0)
    )
    assert result.reason == RejectionReason.SESSION_NOT_FOUND

def test_pin_with_session_id_outside_window(session, context):
    result = CheckInService.check_in_with_pin(
        '123456', context, NEARBY, session_id=session.id, now=datetime(2026, 10, 18, 11, 0)
    )
    assert result.reason == RejectionReason.SESSION_NOT_ACTIVE

def test_pin_ambiguous_lookup_requires_session_id(make_session, context):
    first = make_session()
    make_session(course_id='CS102')

    result = CheckInService.check_in_with_pin('123456', context, NEARBY, now=NOW)
    assert result.reason == RejectionReason.SESSION_NOT_FOUND

    result = CheckInService.check_in_with_pin('123456', context, NEARBY, session_id=first.id, now=NOW)
    assert result.accepted

def test_pin_uses_session_radius(make_session, context):
    make_session(allowed_radius=2000)
    assert CheckInService.check_in_with_pin('123456', context, FAR_AWAY, now=NOW).accepted

def test_pin_out_of_range(session, context):
    result = CheckInService.check_in_with_pin('123456', context, FAR_AWAY, now=NOW)
    assert result.reason == RejectionReason.OUT_OF_RANGE

def test_pin_then_qr_is_duplicate(session, context):
    assert CheckInService.check_in_with_pin('123456', context, NEARBY, now=NOW).accepted

    result = CheckInService.check_in_with_qr(session.qr_data, context, NEARBY, now=NOW)
    assert result.reason == RejectionReason.ALREADY_CHECKED_IN
    assert record_count() == 1

@pytest.mark.parametrize('session_id', [10**30, 0, -1, 1.9, True, 'abc', '1.0'])
def test_pin_session_id_that_cannot_exist(session, context, session_id):
    assert session.id == 1

    result = CheckInService.check_in_with_pin(
        '123456', context, NEARBY, session_id=session_id, now=NOW
    )

    assert result.reason == RejectionReason.SESSION_NOT_FOUND
    assert record_count() == 0

@pytest.mark.parametrize('session_id', [1, 1.0, '1'])
def test_pin_session_id_integral_forms(session, context, session_id):
    result = CheckInService.check_in_with_pin(
        '123456', context, NEARBY, session_id=session_id, now=NOW
    )
    assert result.accepted

def test_pin_ended_session(session, context):
    session.is_active = False
    db.session.commit()

    result = CheckInService.check_in_with_pin('123456', context, NEARBY, session_id=session.id, now=NOW)
    assert result.reason == RejectionReason.SESSION_NOT_ACTIVE

def test_default_clock_is_used(session, context, frozen_now):
    assert CheckInService.check_in_with_qr(session.qr_data, context, NEARBY).accepted

def test_anchor_constants_match_session(session):
    assert (session.latitude, session.longitude) == (ANCHOR_LAT, ANCHOR_LON)
