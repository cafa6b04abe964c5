"""
Tests for the reservation lifecycle: creation, review, approval, rejection, cancellation.
"""

import pytest

from models.reservation import (
    APPROVED, CANCELLED, PENDING, REJECTED, UNDER_REVIEW,
    ConflictError, NotFoundError, PermissionDenied, StateError, UploadedFile, ValidationError,
)


@pytest.fixture
def location_payload():
    """Reservation of location L1, 2024-05-01..2024-05-03."""
    return {
        'event_title': 'Event A',
        'resource_id': 'L1',
        'resource_kind': 'location',
        'start_date': '2024-05-01',
        'end_date': '2024-05-03',
    }


class TestBookingScenario:
    """End-to-end booking of one location by two events."""

    def test_scenario(self, lifecycle, location_payload):
        # Submission starts pending
        a = lifecycle.create('u1', location_payload)
        assert a['status'] == PENDING

        # First booking of the location approves cleanly
        assert lifecycle.check_conflicts(a['id'])['conflicts'] == []
        a = lifecycle.approve(a['id'], 'r1', 'Approved by committee')
        assert a['status'] == APPROVED

        # Overlapping event is refused with a suggestion of equal duration
        b = lifecycle.create('u2', dict(location_payload, event_title='Event B',
                                        start_date='2024-05-02', end_date='2024-05-04'))
        with pytest.raises(ConflictError) as exc:
            lifecycle.approve(b['id'], 'r1', 'Looks good')
        assert exc.value.code == 'EVENT_CONFLICT'
        assert exc.value.status_code == 409
        assert [c['id'] for c in exc.value.conflicts] == [a['id']]
        assert exc.value.suggestion == {'start': '2024-05-04', 'end': '2024-05-06'}
        assert lifecycle.get(b['id'])['status'] == PENDING

        # Forced approval bypasses the check
        b = lifecycle.approve(b['id'], 'r1', 'Shared use agreed', force_approve=True)
        assert b['status'] == APPROVED
        assert b['force_approved'] is True

        # Approved bookings cannot be cancelled
        with pytest.raises(StateError):
            lifecycle.cancel(a['id'], 'u1')

        # Both bookings block the calendar
        ranges = lifecycle.blocked_ranges('L1', 'location')
        assert [(r['start'], r['end'], r['title']) for r in ranges] == [
            ('2024-05-01', '2024-05-03', 'Event A'),
            ('2024-05-02', '2024-05-04', 'Event B'),
        ]


class TestCreate:
    """Reservation submission."""

    def test_defaults(self, lifecycle, location_payload):
        reservation = lifecycle.create('u1', dict(location_payload, details={'budget': '1200'}))

        assert reservation['requester_id'] == 'u1'
        assert reservation['validation_status'] == 'pending'
        assert reservation['details'] == {'budget': '1200'}
        assert reservation['documents'] == []
        assert reservation['approved_by'] is None
        assert reservation['created_at'] == '2024-02-01T09:30:00+01:00'

    def test_open_space_alias_is_normalised(self, lifecycle, location_payload):
        reservation = lifecycle.create('u1', dict(location_payload, resource_kind='openSpace'))
        assert reservation['resource_kind'] == 'open_space'

    def test_datetime_values_keep_date_part(self, lifecycle, location_payload):
        reservation = lifecycle.create('u1', dict(
            location_payload, start_date='2024-05-01T08:00:00.000Z', end_date='2024-05-02'
        ))
        assert reservation['start_date'] == '2024-05-01'

    @pytest.mark.parametrize('field', ['event_title', 'resource_id', 'resource_kind',
                                       'start_date', 'end_date'])
    def test_required_fields(self, lifecycle, location_payload, field):
        payload = dict(location_payload)
        payload[field] = ''
        with pytest.raises(ValidationError):
            lifecycle.create('u1', payload)

    def test_start_after_end(self, lifecycle, location_payload):
        with pytest.raises(ValidationError) as exc:
            lifecycle.create('u1', dict(location_payload, start_date='2024-05-05'))
        assert exc.value.field == 'endDate'

    def test_unknown_resource_kind(self, lifecycle, location_payload):
        with pytest.raises(ValidationError):
            lifecycle.create('u1', dict(location_payload, resource_kind='stadium'))

    def test_malformed_time(self, lifecycle, location_payload):
        with pytest.raises(ValidationError):
            lifecycle.create('u1', dict(location_payload, start_time='25:00'))

    @pytest.mark.parametrize('timeout', [-1, float('nan'), float('inf')])
    def test_invalid_upload_timeout(self, lifecycle, uploader, location_payload, timeout):
        files = [UploadedFile(b'%PDF-1', 'programme.pdf', 'application/pdf')]
        with pytest.raises(ValidationError) as exc:
            lifecycle.create('u1', location_payload, files=files, upload_timeout=timeout)
        assert exc.value.field == 'uploadTimeout'
        assert uploader.stored == {}

    def test_documents_are_attached_in_order(self, lifecycle, location_payload):
        files = [
            UploadedFile(b'%PDF-1', 'programme.pdf', 'application/pdf'),
            UploadedFile(b'PNG', 'poster.png', 'image/png'),
        ]
        reservation = lifecycle.create('u1', location_payload, files=files)
        assert [d['name'] for d in reservation['documents']] == ['programme.pdf', 'poster.png']
        assert reservation['documents'][1]['type'] == 'image/png'

    def test_failed_upload_persists_nothing(self, lifecycle, uploader, location_payload):
        from models.reservation import UploadError

        uploader.fail_on = {'budget.xlsx'}
        files = [
            UploadedFile(b'ok', 'programme.pdf', 'application/pdf'),
            UploadedFile(b'boom', 'budget.xlsx', 'application/vnd.ms-excel'),
        ]
        with pytest.raises(UploadError):
            lifecycle.create('u1', location_payload, files=files)

        assert lifecycle.list()['total'] == 0

    def test_creation_is_recorded_in_history(self, lifecycle, location_payload):
        reservation = lifecycle.create('u1', location_payload)
        history = lifecycle.history(reservation['id'])
        assert [(h['from_status'], h['to_status']) for h in history] == [(None, PENDING)]


class TestReview:
    """PENDING -> UNDER_REVIEW."""

    def test_review(self, lifecycle, make_reservation):
        reservation = lifecycle.review(make_reservation()['id'], 'r1', 'Need budget details')
        assert reservation['status'] == UNDER_REVIEW
        assert reservation['validation_status'] == 'under_review'
        assert reservation['review_notes'] == 'Need budget details'
        assert reservation['reviewed_by'] == 'r1'

    def test_review_requires_notes(self, lifecycle, make_reservation):
        with pytest.raises(ValidationError):
            lifecycle.review(make_reservation()['id'], 'r1', '   ')

    def test_review_twice_fails(self, lifecycle, make_reservation):
        reservation = make_reservation()
        lifecycle.review(reservation['id'], 'r1', 'First look')
        with pytest.raises(StateError) as exc:
            lifecycle.review(reservation['id'], 'r2', 'Second look')
        assert exc.value.current_status == UNDER_REVIEW

    def test_reviewed_reservation_can_be_approved(self, lifecycle, make_reservation):
        reservation = make_reservation()
        lifecycle.review(reservation['id'], 'r1', 'Checked')
        approved = lifecycle.approve(reservation['id'], 'r2', 'Fine')
        assert approved['status'] == APPROVED
        assert approved['reviewed_by'] == 'r1'
        assert approved['approved_by'] == 'r2'


class TestApprove:
    """Approval with conflict checking."""

    def test_approve_records_decision(self, lifecycle, make_reservation):
        approved = lifecycle.approve(make_reservation()['id'], 'r1', 'Welcome')
        assert approved['approved_by'] == 'r1'
        assert approved['approved_at'] == '2024-02-01T09:30:00+01:00'
        assert approved['committee_comments'] == 'Welcome'
        assert approved['force_approved'] is False

    def test_approve_requires_comments(self, lifecycle, make_reservation):
        with pytest.raises(ValidationError):
            lifecycle.approve(make_reservation()['id'], 'r1', '')

    def test_approve_from_terminal_status_fails(self, lifecycle, make_reservation):
        reservation = make_reservation()
        lifecycle.reject(reservation['id'], 'r1', 'No', 'Budget missing')
        with pytest.raises(StateError):
            lifecycle.approve(reservation['id'], 'r1', 'Changed my mind')

    def test_conflict_leaves_no_history(self, lifecycle, make_reservation):
        first = make_reservation()
        lifecycle.approve(first['id'], 'r1', 'OK')
        second = make_reservation(start_date='2024-05-03', end_date='2024-05-03')

        with pytest.raises(ConflictError):
            lifecycle.approve(second['id'], 'r1', 'OK')

        history = lifecycle.history(second['id'])
        assert [h['to_status'] for h in history] == [PENDING]

    def test_adjacent_dates_do_not_conflict(self, lifecycle, make_reservation):
        first = make_reservation()
        lifecycle.approve(first['id'], 'r1', 'OK')
        second = make_reservation(start_date='2024-05-04', end_date='2024-05-06')
        assert lifecycle.approve(second['id'], 'r1', 'OK')['status'] == APPROVED

    def test_unknown_reservation(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.approve(999, 'r1', 'OK')


class TestReject:
    """PENDING -> REJECTED."""

    def test_reject(self, lifecycle, make_reservation):
        rejected = lifecycle.reject(make_reservation()['id'], 'r1', 'Not this term', 'Room closed')
        assert rejected['status'] == REJECTED
        assert rejected['rejection_reason'] == 'Room closed'
        assert rejected['rejected_by'] == 'r1'

    @pytest.mark.parametrize('comments, reason', [('', 'Room closed'), ('Sorry', None)])
    def test_reject_requires_comments_and_reason(self, lifecycle, make_reservation, comments, reason):
        with pytest.raises(ValidationError):
            lifecycle.reject(make_reservation()['id'], 'r1', comments, reason)

    def test_reject_under_review_fails(self, lifecycle, make_reservation):
        reservation = make_reservation()
        lifecycle.review(reservation['id'], 'r1', 'Checking')
        with pytest.raises(StateError):
            lifecycle.reject(reservation['id'], 'r1', 'No', 'Late')


class TestCancel:
    """Requester cancellation."""

    def test_cancel_own_pending(self, lifecycle, make_reservation):
        cancelled = lifecycle.cancel(make_reservation('u1')['id'], 'u1')
        assert cancelled['status'] == CANCELLED
        assert cancelled['cancelled_at'] is not None

    def test_cancel_other_users_reservation(self, lifecycle, make_reservation):
        reservation = make_reservation('u1')
        with pytest.raises(PermissionDenied):
            lifecycle.cancel(reservation['id'], 'u2')
        assert lifecycle.get(reservation['id'])['status'] == PENDING

    def test_ownership_checked_before_status(self, lifecycle, make_reservation):
        reservation = make_reservation('u1')
        lifecycle.approve(reservation['id'], 'r1', 'OK')
        with pytest.raises(PermissionDenied):
            lifecycle.cancel(reservation['id'], 'u2')

    def test_cancel_under_review_fails(self, lifecycle, make_reservation):
        reservation = make_reservation('u1')
        lifecycle.review(reservation['id'], 'r1', 'Checking')
        with pytest.raises(StateError):
            lifecycle.cancel(reservation['id'], 'u1')

    def test_cancel_unknown(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.cancel(42, 'u1')


class TestQueries:
    """Listing and history."""

    def test_list_pagination(self, lifecycle, make_reservation):
        for i in range(5):
            make_reservation(event_title=f'Event {i}')

        page = lifecycle.list(page=2, limit=2)
        assert page['total'] == 5
        assert page['totalPages'] == 3
        assert page['page'] == 2
        assert [r['event_title'] for r in page['data']] == ['Event 2', 'Event 1']

    def test_list_filters(self, lifecycle, make_reservation):
        mine = make_reservation('u1', campus_id='C1')
        make_reservation('u2', campus_id='C2')
        lifecycle.approve(mine['id'], 'r1', 'OK')

        assert [r['id'] for r in lifecycle.list(user_id='u1')['data']] == [mine['id']]
        assert [r['id'] for r in lifecycle.list(campus_id='C1')['data']] == [mine['id']]
        assert [r['id'] for r in lifecycle.list(status=APPROVED)['data']] == [mine['id']]

    def test_list_caps_page_size(self, lifecycle):
        assert lifecycle.list(limit=10_000)['limit'] == 100

    def test_list_unknown_status(self, lifecycle):
        with pytest.raises(ValidationError):
            lifecycle.list(status='ARCHIVED')

    def test_history_tracks_transitions(self, lifecycle, make_reservation):
        reservation = make_reservation()
        lifecycle.review(reservation['id'], 'r1', 'Checking')
        lifecycle.approve(reservation['id'], 'r2', 'OK')

        history = lifecycle.history(reservation['id'])
        assert [(h['from_status'], h['to_status'], h['changed_by']) for h in history] == [
            (None, PENDING, 'u1'),
            (PENDING, UNDER_REVIEW, 'r1'),
            (UNDER_REVIEW, APPROVED, 'r2'),
        ]
