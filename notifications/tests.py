import json
import threading
from unittest import mock

from django.core import mail
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from .channels import DeliveryError, NullChannel, ResendEmailChannel, get_channel, render_email_html
from .dispatcher import NotificationDispatcher, NotificationMessage
from .inbox import NotificationInbox
from .models import Notification


def make_message(**overrides):
    data = {
        "recipient_email": "juan@test.com",
        "recipient_phone": "09171234567",
        "title": "Appointment Approved",
        "message": "Great news Juan!",
        "category": Notification.CATEGORY_SUCCESS,
        "appointment_id": 7,
        "details": {"Provider": "Dr. A", "Reason": "<Check-up>"},
    }
    data.update(overrides)
    return NotificationMessage(**data)


@override_settings(NOTIFICATIONS_EMAIL_CHANNEL="django")
class NotificationDispatcherTests(TestCase):
    def test_sync_send_stores_row_and_emails(self):
        dispatcher = NotificationDispatcher(run_async=False)
        with self.captureOnCommitCallbacks(execute=True):
            notification = dispatcher.send(make_message())

        self.assertEqual(notification.title, "Appointment Approved")
        self.assertEqual(notification.category, Notification.CATEGORY_SUCCESS)
        self.assertEqual(notification.appointment_id, 7)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["juan@test.com"])
        html, _ = mail.outbox[0].alternatives[0]
        self.assertIn("&lt;Check-up&gt;", html)

    def test_email_is_not_sent_before_commit(self):
        dispatcher = NotificationDispatcher(run_async=False)
        with self.captureOnCommitCallbacks() as callbacks:
            dispatcher.send(make_message())

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(mail.outbox, [])

    def test_no_email_recipient_is_in_app_only(self):
        channel = mock.Mock()
        dispatcher = NotificationDispatcher(channel=channel, run_async=False)
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            dispatcher.send(make_message(recipient_email=""))

        self.assertEqual(callbacks, [])
        self.assertEqual(Notification.objects.count(), 1)
        channel.deliver.assert_not_called()

    def test_delivery_failure_goes_to_callback(self):
        channel = mock.Mock()
        channel.name = "broken"
        channel.deliver.side_effect = DeliveryError("rejected")
        dispatcher = NotificationDispatcher(channel=channel, run_async=False)
        failures = []

        with self.assertLogs("notifications.dispatcher", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                dispatcher.send(make_message(), on_failure=failures.append)

        self.assertEqual(Notification.objects.count(), 1)
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0], DeliveryError)

    def test_deliver_raises_channel_errors(self):
        channel = mock.Mock()
        channel.deliver.side_effect = DeliveryError("rejected")

        with self.assertRaises(DeliveryError):
            NotificationDispatcher(channel=channel).deliver(make_message())

    def test_async_send_delivers_on_worker(self):
        delivered_on = []
        channel = mock.Mock()
        channel.name = "mock"
        channel.deliver.side_effect = lambda m: delivered_on.append(threading.current_thread().name)
        dispatcher = NotificationDispatcher(channel=channel, run_async=True)

        with self.captureOnCommitCallbacks(execute=True):
            dispatcher.send(make_message())
            dispatcher.send(make_message(title="Appointment Completed"))
        dispatcher.flush()

        self.assertEqual(delivered_on, ["notification-dispatcher"] * 2)
        self.assertEqual(
            [c.args[0].title for c in channel.deliver.call_args_list],
            ["Appointment Approved", "Appointment Completed"],
        )

    def test_async_failure_reaches_callback(self):
        channel = mock.Mock()
        channel.name = "broken"
        channel.deliver.side_effect = DeliveryError("smtp down")
        dispatcher = NotificationDispatcher(channel=channel, run_async=True)
        failures = []

        with self.assertLogs("notifications.dispatcher", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                dispatcher.send(make_message(), on_failure=failures.append)
            dispatcher.flush()

        self.assertEqual([str(e) for e in failures], ["smtp down"])

    def test_full_queue_drops_email_keeps_row(self):
        channel = mock.Mock()
        dispatcher = NotificationDispatcher(channel=channel, run_async=True, queue_size=1)
        failures = []

        with mock.patch.object(dispatcher, "_ensure_worker"):
            with self.captureOnCommitCallbacks(execute=True):
                dispatcher.send(make_message())
            with self.assertLogs("notifications.dispatcher", level="WARNING") as logs:
                with self.captureOnCommitCallbacks(execute=True):
                    dispatcher.send(make_message(title="Appointment Cancelled"), on_failure=failures.append)

        self.assertIn("queue full", logs.output[0])
        self.assertEqual(len(failures), 1)
        self.assertEqual(Notification.objects.count(), 2)
        channel.deliver.assert_not_called()


class ChannelTests(SimpleTestCase):
    @override_settings(NOTIFICATIONS_FROM_EMAIL="E-Clinic <clinic@test.com>")
    def test_resend_posts_email(self):
        with mock.patch("notifications.channels.http_requests.post") as post:
            post.return_value.ok = True
            post.return_value.json.return_value = {"id": "email_123"}
            ResendEmailChannel(api_key="re_test", url="https://resend.test/emails").deliver(make_message())

        args, kwargs = post.call_args
        self.assertEqual(args, ("https://resend.test/emails",))
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer re_test"})
        self.assertEqual(kwargs["json"]["to"], ["juan@test.com"])
        self.assertEqual(kwargs["json"]["from"], "E-Clinic <clinic@test.com>")
        self.assertEqual(kwargs["json"]["subject"], "Appointment Approved")

    def test_resend_error_response(self):
        with mock.patch("notifications.channels.http_requests.post") as post:
            post.return_value.ok = False
            post.return_value.status_code = 422
            post.return_value.json.return_value = {"message": "Invalid `to` field"}
            with self.assertRaisesMessage(DeliveryError, "Invalid `to` field"):
                ResendEmailChannel(api_key="re_test").deliver(make_message())

    def test_resend_without_key(self):
        with self.assertRaises(DeliveryError):
            ResendEmailChannel(api_key="").deliver(make_message())

    def test_get_channel(self):
        self.assertIsInstance(get_channel("none"), NullChannel)
        self.assertIsInstance(get_channel("RESEND"), ResendEmailChannel)
        with self.assertRaises(ValueError):
            get_channel("pigeon")

    def test_render_email_html(self):
        html = render_email_html(make_message(details={}))
        self.assertIn("<h2>Appointment Approved</h2>", html)
        self.assertIn("Contact: 09171234567", html)
        self.assertNotIn("Appointment Details", html)


class NotificationInboxTests(TestCase):
    def setUp(self):
        self.inbox = NotificationInbox()
        self.first = Notification.objects.create(recipient_email="juan@test.com", title="Received", message="m")
        self.second = Notification.objects.create(recipient_email="juan@test.com", title="Approved", message="m")
        Notification.objects.create(recipient_email="maria@test.com", title="Received", message="m")

    def test_list_for_recipient_newest_first(self):
        rows = self.inbox.list_for("Juan@Test.com")
        self.assertEqual([n.pk for n in rows], [self.second.pk, self.first.pk])

    def test_unread_only(self):
        self.inbox.mark_read(self.second.pk)

        self.assertEqual(self.inbox.list_for("juan@test.com", unread_only=True), [self.first])

        self.inbox.mark_read(self.second.pk, is_read=False)
        self.assertEqual(len(self.inbox.list_for("juan@test.com", unread_only=True)), 2)

    def test_list_without_recipient_returns_everyone(self):
        self.assertEqual(len(self.inbox.list_for()), 3)

    def test_mark_read_unknown(self):
        with self.assertRaises(Notification.DoesNotExist):
            self.inbox.mark_read(9999)
        with self.assertRaises(Notification.DoesNotExist):
            self.inbox.mark_read("abc")

    def test_delete_is_idempotent(self):
        self.inbox.delete(self.first.pk)
        self.inbox.delete(self.first.pk)
        self.inbox.delete("abc")

        self.assertFalse(Notification.objects.filter(pk=self.first.pk).exists())
        self.assertEqual(Notification.objects.count(), 2)


class NotificationApiTests(TestCase):
    def setUp(self):
        self.row = Notification.objects.create(recipient_email="juan@test.com", title="Approved", message="m")

    def test_list_and_unread_filter(self):
        url = reverse("notifications:notifications")

        listing = self.client.get(url, {"email": "juan@test.com"}).json()
        self.assertEqual([n["title"] for n in listing], ["Approved"])
        self.assertFalse(listing[0]["is_read"])

        self.client.patch(
            reverse("notifications:notification_detail", args=[self.row.pk]),
            data=json.dumps({"isRead": True}), content_type="application/json",
        )
        unread = self.client.get(url, {"email": "juan@test.com", "unreadOnly": "true"}).json()
        self.assertEqual(unread, [])

    def test_mark_read_by_body_id(self):
        response = self.client.patch(
            reverse("notifications:notifications"),
            data=json.dumps({"notificationId": self.row.pk}), content_type="application/json",
        )

        self.assertEqual(response.json(), {"success": True})
        self.row.refresh_from_db()
        self.assertTrue(self.row.is_read)

    def test_mark_read_unknown_is_404(self):
        response = self.client.patch(
            reverse("notifications:notification_detail", args=[9999]),
            data=json.dumps({"isRead": True}), content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)

    def test_missing_notification_id_is_400(self):
        response = self.client.patch(
            reverse("notifications:notifications"), data="{}", content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

    def test_delete(self):
        response = self.client.delete(reverse("notifications:notification_detail", args=[self.row.pk]))

        self.assertEqual(response.json(), {"success": True})
        self.assertFalse(Notification.objects.exists())
