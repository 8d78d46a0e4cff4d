"""
Domínio de Notificações - Feed por usuário alimentado por Domain Events.
"""

from .entities import Notification, NotificationKind
from .ports import NotificationRepository, InMemoryNotificationRepository

__all__ = [
    "Notification",
    "NotificationKind",
    "NotificationRepository",
    "InMemoryNotificationRepository",
]
