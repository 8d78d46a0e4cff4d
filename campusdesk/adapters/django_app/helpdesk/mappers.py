"""
Mappers para conversão entre Entities (Core) e Models (Django).

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Tratam apenas conversão de dados

Evitam vazamento de detalhes do ORM para o Core.
"""

from typing import Any, Dict, Iterable, List

from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.messages.entities import Message
from campusdesk.core.notifications.entities import Notification, NotificationKind
from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.tickets.entities import (
    TicketEntity,
    TicketPriority,
    TicketStatus,
    TicketType,
)

from .models import (
    DomainEventModel,
    MessageModel,
    NotificationModel,
    PrincipalModel,
    TicketModel,
)


class PrincipalMapper:

    @staticmethod
    def to_model(entity: Principal) -> PrincipalModel:
        return PrincipalModel(
            id=entity.id,
            email=entity.email,
            display_name=entity.display_name,
            role=entity.role.value,
            department=entity.department,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @staticmethod
    def to_entity(model: PrincipalModel) -> Principal:
        return Principal(
            id=model.id,
            email=model.email,
            display_name=model.display_name,
            role=Role(model.role),
            department=model.department,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class TicketMapper:
    """
    Mapper para conversão entre TicketEntity e TicketModel.

    Responsável por:
    - to_model(): Entity → Model
    - to_entity(): Model → Entity
    - to_fields(): campos graváveis (usado no update condicional)
    """

    @staticmethod
    def to_fields(entity: TicketEntity) -> Dict[str, Any]:
        """
        Campos mutáveis do ticket.

        `version` e `id` ficam de fora: são controlados pelo repositório.
        """
        return {
            'number': entity.number,
            'type': entity.type.value,
            'subject': entity.subject,
            'description': entity.description,
            'category': entity.category,
            'status': entity.status.value,
            'priority': entity.priority.value,
            'created_by': entity.created_by,
            'created_by_name': entity.created_by_name,
            'created_by_email': entity.created_by_email,
            'assigned_to': entity.assigned_to,
            'assigned_to_name': entity.assigned_to_name,
            'attachments': list(entity.attachments),
            'created_at': entity.created_at,
            'updated_at': entity.updated_at,
        }

    @classmethod
    def to_model(cls, entity: TicketEntity) -> TicketModel:
        """
        Note:
            Não chama .save() - deixa isso para o Repository
        """
        return TicketModel(id=entity.id, version=entity.version, **cls.to_fields(entity))

    @staticmethod
    def to_entity(model: TicketModel) -> TicketEntity:
        """
        Converte TicketModel para TicketEntity.

        Note:
            Bypassa validações do factory method .create()
            pois dados já foram validados na criação original
        """
        return TicketEntity(
            id=model.id,
            number=model.number,
            type=TicketType(model.type),
            subject=model.subject,
            description=model.description,
            category=model.category,
            status=TicketStatus(model.status),
            priority=TicketPriority(model.priority),
            created_by=model.created_by,
            created_by_name=model.created_by_name,
            created_by_email=model.created_by_email,
            assigned_to=model.assigned_to,
            assigned_to_name=model.assigned_to_name,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
            attachments=list(model.attachments) if model.attachments else [],
        )

    @classmethod
    def to_entity_list(cls, models: Iterable[TicketModel]) -> List[TicketEntity]:
        return [cls.to_entity(model) for model in models]


class MessageMapper:

    @staticmethod
    def to_model(entity: Message) -> MessageModel:
        return MessageModel(
            id=entity.id,
            ticket_id=entity.ticket_id,
            sender_id=entity.sender_id,
            sender_name=entity.sender_name,
            sender_role=entity.sender_role,
            body=entity.body,
            is_internal=entity.is_internal,
            is_system=entity.is_system,
            created_at=entity.created_at,
        )

    @staticmethod
    def to_entity(model: MessageModel) -> Message:
        return Message(
            id=model.id,
            ticket_id=model.ticket_id,
            sender_id=model.sender_id,
            sender_name=model.sender_name,
            sender_role=model.sender_role,
            body=model.body,
            is_internal=model.is_internal,
            is_system=model.is_system,
            created_at=model.created_at,
        )


class NotificationMapper:

    @staticmethod
    def to_model(entity: Notification) -> NotificationModel:
        return NotificationModel(
            id=entity.id,
            recipient_id=entity.recipient_id,
            ticket_id=entity.ticket_id,
            ticket_number=entity.ticket_number,
            kind=entity.kind.value,
            message=entity.message,
            event_id=entity.event_id,
            read=entity.read,
            created_at=entity.created_at,
            read_at=entity.read_at,
        )

    @staticmethod
    def to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            ticket_id=model.ticket_id,
            ticket_number=model.ticket_number,
            kind=NotificationKind(model.kind),
            message=model.message,
            event_id=model.event_id,
            read=model.read,
            created_at=model.created_at,
            read_at=model.read_at,
        )


class DomainEventMapper:
    """
    Mapper para conversão entre DomainEvent e DomainEventModel.

    `to_dict()` devolve o mesmo formato de `DomainEvent.to_dict()`,
    o que permite reconstruir o evento com o EventRegistry.
    """

    @staticmethod
    def to_model(event: DomainEvent, sequence: int = 0) -> DomainEventModel:
        return DomainEventModel(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            event_data=event.to_dict()['data'],
            version=event.version,
            actor_id=event.actor_id,
            occurred_at=event.occurred_at,
            sequence=sequence,
        )

    @staticmethod
    def to_dict(model: DomainEventModel) -> Dict[str, Any]:
        return {
            'event_id': model.event_id,
            'event_type': model.event_type,
            'aggregate_id': model.aggregate_id,
            'aggregate_type': model.aggregate_type,
            'occurred_at': model.occurred_at.isoformat(),
            'version': model.version,
            'actor_id': model.actor_id,
            'data': dict(model.event_data),
            'sequence': model.sequence,
        }
