from celery import shared_task
from django.contrib.auth import get_user_model


@shared_task(bind=True, max_retries=3, default_retry_delay=5)
def send_notification_task(self, user_id, message, title="Coaching", data=None):
    User = get_user_model()
    try:
        user = User.objects.get(id=user_id)
        from apps.notifications.utils import notify_user
        delivered = notify_user(user, message, title, data)
        return f"[Notification {'Sent' if delivered else 'Skipped'}] to {user.username}"
    except User.DoesNotExist:
        return "[Notification Failed] User not found."
    except Exception as e:
        raise self.retry(exc=e)
