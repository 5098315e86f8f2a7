"""
Notification delivery channels: Redis push and SMTP email.
"""

from .email_sender import SmtpEmailSender
from .redis_push import RedisNotificationSink

__all__ = ["RedisNotificationSink", "SmtpEmailSender"]
