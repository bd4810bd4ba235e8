"""
Fire-and-forget notifications for core writes.

Everything here is queued with ``transaction.on_commit`` so a notification is
only sent for a write that actually committed, and a broken broker can never
roll back or fail the write that triggered it.
"""
import logging

from django.db import transaction

from .tasks import send_notification_task

logger = logging.getLogger(__name__)


def dispatch_notification(recipient, title, message, data=None):
    recipient_id = recipient.pk

    def enqueue():
        try:
            send_notification_task.delay(recipient_id, message, title, data or {})
        except Exception:
            logger.exception(f"[Notification] Could not queue '{title}' for user #{recipient_id}")

    transaction.on_commit(enqueue)


def notify_program_update(program, actor, update_type):
    """Tell the client that their coach changed the program."""
    if program.client_id == actor.pk:
        return
    dispatch_notification(
        program.client,
        "Program Updated",
        f"{actor.display_name} updated your program: {program.title}",
        {
            "type": "program_update",
            "update_type": update_type,
            "program_id": program.pk,
        },
    )


def notify_comment(comment):
    """Tell every other participant of the program about a new comment or reply."""
    program = comment.program
    author = comment.author
    is_reply = comment.is_reply
    role = author.get_user_type_display()

    if is_reply:
        title = f"New Reply from {role}"
        message = f"{author.display_name} replied to a comment in {program.title}"
    else:
        title = f"New Comment from {role}"
        message = f"{author.display_name} commented on {program.title}"

    data = {
        "type": "comment",
        "is_reply": is_reply,
        "program_id": program.pk,
        "comment_id": comment.pk,
        "progress_log_id": comment.progress_log_id or "",
        "has_attachment": bool(comment.media_url),
    }
    for recipient in (program.coach, program.client):
        if recipient.pk != author.pk:
            dispatch_notification(recipient, title, message, data)
