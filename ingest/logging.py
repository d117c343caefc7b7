import logging

from celery import current_task


class CeleryTaskIDFilter(logging.Filter):
    """
    Stamp each record with the id and name of the Celery task running in the
    current worker, so lines of concurrent sagas can be told apart in the
    shared worker log. Records written outside a task get empty values.
    """

    def filter(self, record):
        task = current_task
        request_id = task.request.id if task else None
        if request_id:
            record.task_id = f"/[{request_id}]"
            record.task_name = task.name
        else:
            record.task_id = ""
            record.task_name = ""
        return True
