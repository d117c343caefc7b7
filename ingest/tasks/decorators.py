from functools import wraps
from logging import getLogger

from django.utils.timezone import now

logger = getLogger(__name__)


def update_tracking_status(f):
    """
    Decorator for task bodies which work on a TrackingRecord

    Assumes that all wrapped functions get the Celery task self value as the
    first parameter and the TrackingRecord as the second.

    A record which is already resolved is left alone, so a task delivered a
    second time does not repeat the import. Otherwise the task id and start
    time are recorded before the body runs. If an exception escapes the body
    while the record is still PROCESSING, the record is marked FAILED before
    the exception is raised again.
    """

    @wraps(f)
    def inner(self, tracking_record, *args, **kwargs):
        # Another worker may have resolved the record in the meantime:
        guard_qs = tracking_record.__class__._default_manager.filter(
            pk=tracking_record.pk, status__in=tracking_record.TERMINAL_STATES
        )
        if guard_qs.exists():
            logger.warning(
                "Import %s was already resolved and will not be repeated",
                tracking_record,
                extra={"data": {"object": tracking_record, "args": args}},
            )
            return

        tracking_record.last_started = now()
        tracking_record.task_id = self.request.id
        tracking_record.save()
        try:
            return f(self, tracking_record, *args, **kwargs)
        except Exception as exc:
            logger.exception("Unhandled exception while processing %s", tracking_record)
            if not tracking_record.is_resolved:
                tracking_record.mark_failed(
                    f"Unhandled exception: {exc}", clear_identifier=True
                )
            raise

    return inner
