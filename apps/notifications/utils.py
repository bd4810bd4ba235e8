import functools
import logging
import os

import firebase_admin
from django.conf import settings
from django.core.mail import send_mail
from firebase_admin import credentials, messaging

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def firebase_available():
    """Initialise the Firebase app once; False when no credentials are configured."""
    cred_path = getattr(settings, 'FIREBASE_CREDENTIALS_PATH', None)
    if not cred_path or not os.path.exists(cred_path):
        logger.warning(f"[Firebase] Credentials not found at {cred_path}")
        return False
    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.Certificate(cred_path))
        logger.info("[Firebase] Initialized successfully.")
        return True
    except (ValueError, OSError) as e:
        logger.error(f"[Firebase Init Error] {e}")
        return False


def notify_user(user, message, title="Coaching", data=None):
    """
    Send a push notification via Firebase or fall back to email.
    :param user: User instance
    :param message: Body of the notification
    :param title: Title of the notification
    :param data: Optional dict of extra data (stringified for FCM)
    """
    data = {str(k): str(v) for k, v in (data or {}).items()}

    if user.fcm_token and firebase_available():
        try:
            messaging.send(messaging.Message(
                notification=messaging.Notification(title=title, body=message),
                token=user.fcm_token,
                data=data,
            ))
            logger.info(f"[Firebase] Push sent to {user.username}")
            return True
        except Exception as e:
            logger.error(f"[Firebase Error] {e}")

    if user.email:
        send_mail(
            subject=title,
            message=message,
            from_email=None,
            recipient_list=[user.email],
            fail_silently=False,
        )
        logger.info(f"[Email] Sent to {user.email}")
        return True
    return False
