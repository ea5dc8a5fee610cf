from notifiers.base import Notification, Notifier, StatusChange
from notifiers.email import EmailNotifier
from notifiers.transports import HttpWebhookTransport, SmtpDigestTransport, WebhookTarget
from notifiers.webhook import WebhookNotifier

__all__ = [
    "EmailNotifier",
    "HttpWebhookTransport",
    "Notification",
    "Notifier",
    "SmtpDigestTransport",
    "StatusChange",
    "WebhookNotifier",
    "WebhookTarget",
]
