"""
Ports (Interfaces) do Domínio de Notificações.
"""

from typing import List, Optional, Protocol, runtime_checkable

from campusdesk.core.shared.memory import InMemoryCollection

from .entities import Notification


@runtime_checkable
class NotificationRepository(Protocol):
    """
    Interface para o feed de notificações.

    Implementações:
    - DjangoNotificationRepository (ORM, unique_together event/recipient)
    - InMemoryNotificationRepository (testes)
    """

    def add(self, notification: Notification) -> bool:
        """
        Grava notificação se ainda não existe para (event_id, recipient_id).

        Returns:
            True se criada; False se já entregue antes
        """
        ...

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        ...

    def save(self, notification: Notification) -> None:
        ...

    def list_for_recipient(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[Notification]:
        """Notificações do destinatário, mais recentes primeiro."""
        ...

    def mark_all_as_read(self, recipient_id: str) -> int:
        """Marca todas como lidas; retorna quantas mudaram."""
        ...

    def unread_count(self, recipient_id: str) -> int:
        ...


class InMemoryNotificationRepository(InMemoryCollection):
    """Implementação em memória do NotificationRepository."""

    def __init__(self):
        super().__init__()
        self._notifications: dict = {}
        self._delivered: dict = {}

    def add(self, notification: Notification) -> bool:
        key = f"{notification.event_id}:{notification.recipient_id}"
        with self._lock:
            if key in self._delivered:
                return False
            self._notifications[notification.id] = self._copy(notification)
            self._delivered[key] = notification.id
        self._record_undo(self._restore(self._notifications, notification.id, None))
        self._record_undo(self._restore(self._delivered, key, None))
        return True

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            notification = self._notifications.get(notification_id)
            return self._copy(notification) if notification else None

    def save(self, notification: Notification) -> None:
        with self._lock:
            previous = self._notifications.get(notification.id)
            self._notifications[notification.id] = self._copy(notification)
        self._record_undo(self._restore(self._notifications, notification.id, previous))

    def list_for_recipient(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[Notification]:
        with self._lock:
            items = [
                self._copy(n) for n in self._notifications.values()
                if n.recipient_id == recipient_id and not (unread_only and n.read)
            ]
        items.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        return items[:limit]

    def mark_all_as_read(self, recipient_id: str) -> int:
        changed = 0
        for notification in self.list_for_recipient(recipient_id, unread_only=True, limit=10 ** 6):
            if notification.mark_as_read():
                self.save(notification)
                changed += 1
        return changed

    def unread_count(self, recipient_id: str) -> int:
        with self._lock:
            return sum(
                1 for n in self._notifications.values()
                if n.recipient_id == recipient_id and not n.read
            )

    def clear(self) -> None:
        with self._lock:
            self._notifications.clear()
            self._delivered.clear()
