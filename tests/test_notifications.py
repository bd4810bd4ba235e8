from unittest import mock

import pytest
from django.core import mail

from apps.notifications import utils
from apps.notifications.dispatch import notify_program_update
from apps.notifications.tasks import send_notification_task
from apps.programs import services as structure

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def no_firebase():
    utils.firebase_available.cache_clear()
    yield
    utils.firebase_available.cache_clear()


class TestNotifyUser:
    def test_falls_back_to_email_without_credentials(self, client_user, settings):
        settings.FIREBASE_CREDENTIALS_PATH = ''
        client_user.fcm_token = 'device-token'

        assert utils.notify_user(client_user, "Your program changed", "Program Updated")

        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == "Program Updated"
        assert mail.outbox[0].to == [client_user.email]

    def test_push_when_firebase_is_available(self, client_user):
        client_user.fcm_token = 'device-token'
        with mock.patch.object(utils, 'firebase_available', return_value=True), \
                mock.patch.object(utils.messaging, 'send') as send:
            assert utils.notify_user(client_user, "Hi", data={'program_id': 4})

        message = send.call_args.args[0]
        assert message.token == 'device-token'
        assert message.data == {'program_id': '4'}
        assert mail.outbox == []

    def test_push_failure_falls_back_to_email(self, client_user):
        client_user.fcm_token = 'device-token'
        with mock.patch.object(utils, 'firebase_available', return_value=True), \
                mock.patch.object(utils.messaging, 'send', side_effect=RuntimeError("fcm down")):
            assert utils.notify_user(client_user, "Hi")
        assert len(mail.outbox) == 1

    def test_nowhere_to_deliver(self, client_user):
        client_user.email = ''
        assert utils.notify_user(client_user, "Hi") is False


class TestTask:
    def test_unknown_user(self):
        assert send_notification_task.run(999999, "Hi") == "[Notification Failed] User not found."

    def test_delivers_to_user(self, client_user):
        with mock.patch.object(utils, 'notify_user', return_value=True) as notify:
            result = send_notification_task.run(client_user.pk, "Hi", "Title", {'a': 1})
        notify.assert_called_once_with(client_user, "Hi", "Title", {'a': 1})
        assert result == f"[Notification Sent] to {client_user.username}"


class TestProgramUpdates:
    def test_coach_edits_notify_the_client(self, program, coach, client_user, queued, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            structure.add_week(program, coach, "Week 1")

        user_id, message, title, data = queued.delay.call_args.args
        assert user_id == client_user.pk
        assert title == "Program Updated"
        assert data['update_type'] == 'week_added'

    def test_client_actions_notify_nobody(self, program, client_user, queued, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            notify_program_update(program, client_user, 'details')
        queued.delay.assert_not_called()
