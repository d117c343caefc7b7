from unittest import mock

from django.test import TestCase

from ingest.models import TrackingRecord
from ingest.tasks.decorators import update_tracking_status

from .utils import create_tracking_record


def make_task_self(task_id="4f2e8c1a-0000-4000-8000-000000000001"):
    task_self = mock.MagicMock()
    task_self.request.id = task_id
    return task_self


class UpdateTrackingStatusTests(TestCase):
    def test_records_start(self):
        @update_tracking_status
        def body(self, tracking_record, value):
            tracking_record.mark_succeeded("Done")
            return value * 2

        record = create_tracking_record()
        self.assertEqual(body(make_task_self(), record, 21), 42)

        record.refresh_from_db()
        self.assertEqual(record.status, TrackingRecord.Status.SUCCESS)
        self.assertIsNotNone(record.last_started)
        self.assertEqual(str(record.task_id), "4f2e8c1a-0000-4000-8000-000000000001")

    def test_resolved_record_is_skipped(self):
        body = mock.MagicMock()
        wrapped = update_tracking_status(body)
        record = create_tracking_record()
        record.mark_failed("Earlier failure")

        with self.assertLogs("ingest.tasks.decorators", level="WARNING") as log:
            self.assertIsNone(wrapped(make_task_self(), record))

        self.assertIn("was already resolved and will not be repeated", log.output[0])
        body.assert_not_called()
        record.refresh_from_db()
        self.assertIsNone(record.last_started)

    def test_record_resolved_elsewhere_is_skipped(self):
        body = mock.MagicMock()
        wrapped = update_tracking_status(body)
        record = create_tracking_record()
        # A stale in-memory copy of a record another worker finished
        TrackingRecord.objects.filter(pk=record.pk).update(
            status=TrackingRecord.Status.SUCCESS
        )

        with self.assertLogs("ingest.tasks.decorators", level="WARNING"):
            wrapped(make_task_self(), record)

        body.assert_not_called()

    def test_unhandled_exception_marks_failed(self):
        @update_tracking_status
        def body(self, tracking_record):
            raise RuntimeError("boom")

        record = create_tracking_record(identifier="21.T11998/1")

        with self.assertLogs("ingest.tasks.decorators", level="ERROR"):
            with self.assertRaisesMessage(RuntimeError, "boom"):
                body(make_task_self(), record)

        record.refresh_from_db()
        self.assertEqual(record.status, TrackingRecord.Status.FAILED)
        self.assertEqual(record.message, "Unhandled exception: boom")
        self.assertEqual(record.identifier, "")
        self.assertIsNotNone(record.last_started)

    def test_exception_after_resolution_keeps_status(self):
        @update_tracking_status
        def body(self, tracking_record):
            tracking_record.mark_succeeded("Done")
            raise RuntimeError("late")

        record = create_tracking_record()

        with self.assertLogs("ingest.tasks.decorators", level="ERROR"):
            with self.assertRaises(RuntimeError):
                body(make_task_self(), record)

        record.refresh_from_db()
        self.assertEqual(record.status, TrackingRecord.Status.SUCCESS)
        self.assertEqual(record.message, "Done")
