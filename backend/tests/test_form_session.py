"""
Form session (create/edit workflow) tests
"""
from app.services.form_session import (
    DELETED_MESSAGE, REGISTERED_MESSAGE, UPDATED_MESSAGE, FormMode, FormSession,
)
from conftest import ALICE, BOB


class TestCreate:

    def test_starts_idle(self, session):
        assert session.mode is FormMode.IDLE
        assert session.pending is None

    def test_successful_create_stays_idle(self, session, store):
        result = session.submit(ALICE)

        assert result.success
        assert result.message == REGISTERED_MESSAGE
        assert result.record.student_id == '1001'
        assert len(store) == 1
        assert session.mode is FormMode.IDLE

    def test_values_are_trimmed_before_storing(self, session):
        result = session.submit({**ALICE, 'emailId': '  alice@x.com '})
        assert result.record.email_id == 'alice@x.com'

    def test_duplicate_student_id_fails(self, session, store):
        session.submit(ALICE)
        result = session.submit({**BOB, 'studentId': '1001'})

        assert not result.success
        assert result.errors == {'studentId': 'This Student ID already exists.'}
        assert len(store) == 1

    def test_invalid_submission_reports_all_errors(self, session, store):
        result = session.submit({'studentName': 'Al3x', 'studentId': '', 'emailId': 'x', 'contactNumber': '12345'})
        assert set(result.errors) == {'studentName', 'studentId', 'emailId', 'contactNumber'}
        assert len(store) == 0


class TestEdit:

    def test_start_edit_selects_record(self, session, store):
        record = session.submit(ALICE).record
        assert session.start_edit(record.id) == record
        assert session.mode is FormMode.EDITING
        assert session.edit_id == record.id

    def test_start_edit_unknown_id_changes_nothing(self, session):
        assert session.start_edit('missing') is None
        assert session.mode is FormMode.IDLE

    def test_new_edit_replaces_target(self, session):
        alice = session.submit(ALICE).record
        bob = session.submit(BOB).record
        session.start_edit(alice.id)
        session.start_edit(bob.id)
        assert session.edit_id == bob.id

    def test_cancel_returns_to_idle(self, session):
        alice = session.submit(ALICE).record
        session.start_edit(alice.id)
        session.cancel_edit()
        assert session.mode is FormMode.IDLE

    def test_update_own_values_has_no_conflict(self, session, store):
        alice = session.submit(ALICE).record
        session.start_edit(alice.id)

        result = session.submit({**ALICE, 'studentName': 'Alice Stoner'})

        assert result.success
        assert result.message == UPDATED_MESSAGE
        assert result.record.id == alice.id
        assert result.record.student_name == 'Alice Stoner'
        assert result.record.updated_at is not None
        assert len(store) == 1
        assert session.mode is FormMode.IDLE

    def test_update_conflicting_with_other_record_stays_editing(self, session):
        alice = session.submit(ALICE).record
        session.submit(BOB)
        session.start_edit(alice.id)

        result = session.submit({**ALICE, 'emailId': 'BOB@x.com'})

        assert not result.success
        assert result.errors == {'emailId': 'This email address is already registered.'}
        assert session.mode is FormMode.EDITING

    def test_update_after_target_removed_creates(self, session, store):
        alice = session.submit(ALICE).record
        session.start_edit(alice.id)
        store.remove(alice.id)

        result = session.submit(ALICE)

        assert result.message == REGISTERED_MESSAGE
        assert result.record.id != alice.id
        assert session.mode is FormMode.IDLE


class TestPendingSubmission:

    def test_begin_records_pending_with_delay(self, store):
        session = FormSession(store, delay_ms=500)
        pending = session.begin_submission(ALICE)

        assert session.pending is pending
        assert pending.delay_seconds == 0.5
        assert pending.target_id is None
        assert len(store) == 0

    def test_cancel_submission_drops_it(self, session, store):
        session.begin_submission(ALICE)
        session.cancel_submission()

        result = session.complete_submission()
        assert not result.success
        assert len(store) == 0

    def test_pending_keeps_target_of_edit(self, session):
        alice = session.submit(ALICE).record
        session.start_edit(alice.id)
        assert session.begin_submission(ALICE).target_id == alice.id

    def test_complete_clears_pending(self, session):
        session.begin_submission(ALICE)
        session.complete_submission()
        assert session.pending is None


class TestStorageFailures:

    def test_failed_write_reports_message_and_keeps_record(self, session, store, slot):
        slot.fail_writes = True
        result = session.submit(ALICE)

        assert not result.success
        assert result.message == 'Error saving data. Please try again.'
        assert result.record is not None
        assert len(store) == 1
        assert session.mode is FormMode.IDLE


class TestDelete:

    def test_delete(self, session, store):
        alice = session.submit(ALICE).record
        result = session.delete(alice.id)
        assert result.success
        assert result.message == DELETED_MESSAGE
        assert len(store) == 0

    def test_delete_edit_target_cancels_edit(self, session):
        alice = session.submit(ALICE).record
        session.start_edit(alice.id)
        session.delete(alice.id)
        assert session.mode is FormMode.IDLE

    def test_delete_other_record_keeps_edit(self, session):
        alice = session.submit(ALICE).record
        bob = session.submit(BOB).record
        session.start_edit(alice.id)
        session.delete(bob.id)
        assert session.edit_id == alice.id

    def test_delete_unknown_id_is_not_an_error(self, session):
        assert session.delete('missing').success

    def test_delete_write_failure(self, session, store, slot):
        alice = session.submit(ALICE).record
        slot.fail_writes = True
        result = session.delete(alice.id)
        assert not result.success
        assert result.message == 'Error saving data. Please try again.'
        assert len(store) == 0
