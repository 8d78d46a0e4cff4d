"""
Repositórios Django do help desk.

Implementam as interfaces (Ports) definidas no Core.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Garantias de concorrência:
- Ticket.save: compare-and-set via UPDATE ... WHERE version = lida
- Ticket.touch: UPDATE ... WHERE updated_at < novo (máximo atômico)
- Números de ticket e notificações (evento, destinatário): índice único
- Mensagens: linha do ticket travada (select_for_update) para manter
  created_at estritamente crescente dentro do ticket
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import logging

from django.db import IntegrityError, transaction
from django.db.models import DateTimeField, F, Max, Q, Value
from django.db.models.functions import Greatest, Lower
from django.utils import timezone

from campusdesk.core.authorization.policy import TicketVisibility
from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.messages.entities import Message
from campusdesk.core.messages.ports import TICK
from campusdesk.core.notifications.entities import Notification
from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.shared.exceptions import ConflictError, EntityNotFoundError
from campusdesk.core.shared.interfaces import EventStore
from campusdesk.core.tickets.dtos import TicketPage, TicketQueryDTO
from campusdesk.core.tickets.entities import TicketEntity

from ..shared.repository import BaseRepository, translate_store_errors
from .mappers import (
    DomainEventMapper,
    MessageMapper,
    NotificationMapper,
    PrincipalMapper,
    TicketMapper,
)
from .models import (
    DomainEventModel,
    MessageModel,
    NotificationModel,
    PrincipalModel,
    TicketModel,
)

logger = logging.getLogger(__name__)


class DjangoPrincipalRepository(BaseRepository[Principal, PrincipalModel]):
    """Implementação Django do PrincipalRepository."""

    model_class = PrincipalModel

    def to_entity(self, model: PrincipalModel) -> Principal:
        return PrincipalMapper.to_entity(model)

    def to_model(self, entity: Principal) -> PrincipalModel:
        return PrincipalMapper.to_model(entity)

    @translate_store_errors
    def add(self, principal: Principal) -> None:
        self._insert(principal)
        logger.info(f"Principal registrado: {principal.id} ({principal.email})")

    @translate_store_errors
    def save(self, principal: Principal) -> None:
        updated = PrincipalModel.objects.filter(id=principal.id).update(
            email=principal.email,
            display_name=principal.display_name,
            role=principal.role.value,
            department=principal.department,
            updated_at=principal.updated_at,
        )
        if not updated:
            raise EntityNotFoundError(
                f"Principal {principal.id} não encontrado",
                entity_type="Principal",
                entity_id=principal.id,
            )

    @translate_store_errors
    def list_all(self) -> List[Principal]:
        qs = PrincipalModel.objects.order_by(Lower('display_name'), 'id')
        return [self.to_entity(m) for m in qs]

    @translate_store_errors
    def list_by_roles(self, roles: Iterable[Role]) -> List[Principal]:
        values = [role.value for role in roles]
        qs = PrincipalModel.objects.filter(role__in=values).order_by(Lower('display_name'), 'id')
        return [self.to_entity(m) for m in qs]


class DjangoTicketRepository(BaseRepository[TicketEntity, TicketModel]):
    """
    Implementação Django do TicketRepository.

    Example:
        repo = DjangoTicketRepository()
        repo.add(ticket)                 # version = 1
        ticket.change_status(TicketStatus.RESOLVED)
        repo.save(ticket)                # version = 2, ou ConflictError
    """

    model_class = TicketModel

    def to_entity(self, model: TicketModel) -> TicketEntity:
        return TicketMapper.to_entity(model)

    def to_model(self, entity: TicketEntity) -> TicketModel:
        return TicketMapper.to_model(entity)

    @translate_store_errors
    def add(self, ticket: TicketEntity) -> None:
        ticket.version = 1
        self._insert(ticket)
        logger.debug(f"Ticket inserido: {ticket.number}")

    @translate_store_errors
    def save(self, ticket: TicketEntity) -> None:
        fields = TicketMapper.to_fields(ticket)
        fields.pop('updated_at')
        updated = (
            TicketModel.objects
            .filter(id=ticket.id, version=ticket.version)
            .update(
                version=F('version') + 1,
                # touch concorrente pode ter avançado updated_at
                updated_at=Greatest(
                    F('updated_at'),
                    Value(ticket.updated_at, output_field=DateTimeField()),
                ),
                **fields,
            )
        )
        if not updated:
            if not TicketModel.objects.filter(id=ticket.id).exists():
                raise EntityNotFoundError(
                    f"Ticket {ticket.id} não encontrado",
                    entity_type="Ticket",
                    entity_id=ticket.id,
                )
            raise ConflictError(
                f"Ticket {ticket.number} foi modificado por outro processo",
                entity_id=ticket.id,
            )

        ticket.version += 1
        ticket.updated_at = (
            TicketModel.objects
            .filter(id=ticket.id)
            .values_list('updated_at', flat=True)
            .get()
        )
        logger.debug(f"Ticket salvo: {ticket.number} v{ticket.version}")

    @translate_store_errors
    def touch(self, ticket_id: str, at: datetime) -> None:
        advanced = TicketModel.objects.filter(id=ticket_id, updated_at__lt=at).update(updated_at=at)
        if not advanced and not TicketModel.objects.filter(id=ticket_id).exists():
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não encontrado",
                entity_type="Ticket",
                entity_id=ticket_id,
            )

    @translate_store_errors
    def get_by_number(self, number: str) -> Optional[TicketEntity]:
        model = TicketModel.objects.filter(number=number).first()
        return self.to_entity(model) if model else None

    @staticmethod
    def _visibility_filter(visibility: TicketVisibility) -> Q:
        criteria = Q(created_by=visibility.principal_id)
        if visibility.types:
            criteria |= Q(type__in=[t.value for t in visibility.types])
        if visibility.include_assigned:
            criteria |= Q(assigned_to=visibility.principal_id)
        return criteria

    @staticmethod
    def _query_filter(query: TicketQueryDTO) -> Q:
        criteria = Q()
        if query.status_enum is not None:
            criteria &= Q(status=query.status_enum.value)
        if query.type_enum is not None:
            criteria &= Q(type=query.type_enum.value)
        if query.assigned_to:
            criteria &= Q(assigned_to=query.assigned_to)
        if query.created_by:
            criteria &= Q(created_by=query.created_by)
        if query.created_since:
            criteria &= Q(created_at__gte=query.created_since)
        text = query.search_text
        if text:
            criteria &= (
                Q(number__icontains=text)
                | Q(subject__icontains=text)
                | Q(description__icontains=text)
                | Q(created_by_name__icontains=text)
            )
        return criteria

    @translate_store_errors
    def search(
        self,
        query: TicketQueryDTO,
        visibility: Optional[TicketVisibility] = None,
    ) -> TicketPage:
        """
        Visibilidade primeiro, filtros do usuário depois.

        Ordenação: created_at decrescente, id como desempate.
        """
        queryset = TicketModel.objects.all()
        if visibility is not None and not visibility.unrestricted:
            queryset = queryset.filter(self._visibility_filter(visibility))
        queryset = queryset.filter(self._query_filter(query)).order_by('-created_at', '-id')

        total = queryset.count()
        if query.page_size:
            offset = (query.page - 1) * query.page_size
            queryset = queryset[offset:offset + query.page_size]

        return TicketPage(items=TicketMapper.to_entity_list(queryset), total=total)


class DjangoMessageRepository(BaseRepository[Message, MessageModel]):
    """Implementação Django do MessageRepository (append-only)."""

    model_class = MessageModel

    def to_entity(self, model: MessageModel) -> Message:
        return MessageMapper.to_entity(model)

    def to_model(self, entity: Message) -> MessageModel:
        return MessageMapper.to_model(entity)

    @translate_store_errors
    def add(self, message: Message) -> None:
        with transaction.atomic():
            # Serializa escritas no mesmo ticket
            locked = (
                TicketModel.objects
                .select_for_update()
                .filter(id=message.ticket_id)
                .values_list('id', flat=True)
                .first()
            )
            if locked is None:
                raise EntityNotFoundError(
                    f"Ticket {message.ticket_id} não encontrado",
                    entity_type="Ticket",
                    entity_id=message.ticket_id,
                )
            latest = (
                MessageModel.objects
                .filter(ticket_id=message.ticket_id)
                .aggregate(latest=Max('created_at'))['latest']
            )
            if latest is not None and message.created_at <= latest:
                message.created_at = latest + TICK
            self._insert(message)

    @translate_store_errors
    def list_for_ticket(self, ticket_id: str, include_internal: bool = True) -> List[Message]:
        qs = MessageModel.objects.filter(ticket_id=ticket_id)
        if not include_internal:
            qs = qs.filter(is_internal=False)
        return [self.to_entity(m) for m in qs.order_by('created_at', 'id')]


class DjangoNotificationRepository(BaseRepository[Notification, NotificationModel]):
    """
    Implementação Django do NotificationRepository.

    A constraint (event_id, recipient_id) garante entrega única
    mesmo com o worker Celery reprocessando o mesmo evento.
    """

    model_class = NotificationModel

    def to_entity(self, model: NotificationModel) -> Notification:
        return NotificationMapper.to_entity(model)

    def to_model(self, entity: Notification) -> NotificationModel:
        return NotificationMapper.to_model(entity)

    @translate_store_errors
    def add(self, notification: Notification) -> bool:
        try:
            self._insert(notification)
        except ConflictError:
            logger.debug(
                f"Notificação já entregue: evento={notification.event_id} "
                f"destinatário={notification.recipient_id}"
            )
            return False
        return True

    @translate_store_errors
    def save(self, notification: Notification) -> None:
        updated = NotificationModel.objects.filter(id=notification.id).update(
            read=notification.read,
            read_at=notification.read_at,
        )
        if not updated:
            raise EntityNotFoundError(
                f"Notificação {notification.id} não encontrada",
                entity_type="Notification",
                entity_id=notification.id,
            )

    @translate_store_errors
    def list_for_recipient(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[Notification]:
        qs = NotificationModel.objects.filter(recipient_id=recipient_id)
        if unread_only:
            qs = qs.filter(read=False)
        return [self.to_entity(m) for m in qs.order_by('-created_at', '-id')[:limit]]

    @translate_store_errors
    def mark_all_as_read(self, recipient_id: str) -> int:
        return (
            NotificationModel.objects
            .filter(recipient_id=recipient_id, read=False)
            .update(read=True, read_at=timezone.now())
        )

    @translate_store_errors
    def unread_count(self, recipient_id: str) -> int:
        return NotificationModel.objects.filter(recipient_id=recipient_id, read=False).count()


class DjangoEventStore(EventStore):
    """
    Event Store usando Django ORM.

    `append` roda dentro da transação do DjangoUnitOfWork:
    evento e mutação são gravados (ou descartados) juntos.
    """

    # Tentativas antes de desistir de uma sequência disputada
    SEQUENCE_ATTEMPTS = 3

    def _next_sequence(self, aggregate_id: str) -> int:
        last = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id)
            .aggregate(last=Max('sequence'))['last']
        )
        return (last or 0) + 1

    @translate_store_errors
    def append(self, event: DomainEvent) -> None:
        """
        Grava o evento com a próxima sequência do agregado.

        (aggregate_id, sequence) é único no banco. Se outro processo
        gravar a mesma sequência antes, recalcula e tenta de novo.

        Raises:
            ConflictError: Se a sequência continuar disputada
        """
        for attempt in range(1, self.SEQUENCE_ATTEMPTS + 1):
            sequence = self._next_sequence(event.aggregate_id)
            model = DomainEventMapper.to_model(event, sequence=sequence)
            try:
                with transaction.atomic():
                    model.save(force_insert=True)
            except IntegrityError:
                logger.warning(
                    f"Sequência {sequence} já usada em {event.aggregate_id} "
                    f"(tentativa {attempt}/{self.SEQUENCE_ATTEMPTS})"
                )
                continue
            logger.debug(f"Event stored: {event.event_type} for {event.aggregate_id}")
            return
        raise ConflictError(
            f"Sequência de eventos em disputa para {event.aggregate_id}",
            entity_id=event.aggregate_id,
        )

    @translate_store_errors
    def get_events_for_aggregate(self, aggregate_id: str) -> List[Dict[str, Any]]:
        events = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id)
            .order_by('sequence', 'recorded_at')
        )
        return [DomainEventMapper.to_dict(e) for e in events]
