"""
Django Models do help desk.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em campusdesk/core.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio fica nas Entities do Core
- Models são mapeados para/de Entities via Mappers

Tabelas:
- PrincipalModel: Identidades e papéis
- TicketModel: Tickets (número único, versão para compare-and-set)
- MessageModel: Mensagens append-only (respostas, notas, sistema)
- NotificationModel: Feed de notificações (único por evento/destinatário)
- DomainEventModel: Event Store (outbox/auditoria)
"""

from django.db import models
from django.utils import timezone


class RoleChoices(models.TextChoices):
    """Choices de papel (espelha Role do Core)."""
    STAFF = 'staff', 'Staff'
    AGENT = 'agent', 'Agent'
    IT_AGENT = 'it-agent', 'IT Agent'
    FACILITY_AGENT = 'facility-agent', 'Facility Agent'
    ADMIN = 'admin', 'Admin'


class TicketTypeChoices(models.TextChoices):
    IT_SUPPORT = 'IT Support', 'IT Support'
    FACILITY = 'Facility', 'Facility'


class TicketStatusChoices(models.TextChoices):
    """Choices para status de ticket (espelha TicketStatus do Core)."""
    OPEN = 'Open', 'Open'
    IN_PROGRESS = 'In Progress', 'In Progress'
    PENDING = 'Pending', 'Pending'
    RESOLVED = 'Resolved', 'Resolved'
    CLOSED = 'Closed', 'Closed'
    URGENT = 'Urgent', 'Urgent'


class TicketPriorityChoices(models.TextChoices):
    """Choices para prioridade de ticket (espelha TicketPriority do Core)."""
    LOW = 'Low', 'Low'
    MEDIUM = 'Medium', 'Medium'
    HIGH = 'High', 'High'
    CRITICAL = 'Critical', 'Critical'


class PrincipalModel(models.Model):
    """
    Registro de identidade.

    O `id` vem do provedor de autenticação externo. Principals
    nunca são removidos.
    """

    id = models.CharField(
        max_length=128,
        primary_key=True,
        editable=False,
        help_text="ID do provedor de autenticação"
    )

    email = models.CharField(max_length=254, blank=True, db_index=True)

    display_name = models.CharField(max_length=120)

    role = models.CharField(
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.STAFF,
        db_index=True,
    )

    department = models.CharField(max_length=120, null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'principals'
        verbose_name = 'Principal'
        verbose_name_plural = 'Principals'
        ordering = ['display_name', 'id']

    def __str__(self):
        return f"{self.display_name} <{self.email}> ({self.role})"


class TicketModel(models.Model):
    """
    Model Django para persistência de Tickets.

    Fields:
        id: UUID como primary key (gerado pela Entity)
        number: Número legível ("ECPS-000123"), único
        version: Contador do compare-and-set
        created_by_*: Snapshot do criador
        assigned_to*: Responsável atual
    """

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único do ticket"
    )

    number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Número legível do ticket"
    )

    type = models.CharField(
        max_length=20,
        choices=TicketTypeChoices.choices,
        db_index=True,
    )

    subject = models.CharField(max_length=200)

    description = models.TextField()

    category = models.CharField(max_length=100, default='General')

    status = models.CharField(
        max_length=20,
        choices=TicketStatusChoices.choices,
        default=TicketStatusChoices.OPEN,
        db_index=True,
        help_text="Estado atual do ticket"
    )

    priority = models.CharField(
        max_length=20,
        choices=TicketPriorityChoices.choices,
        default=TicketPriorityChoices.MEDIUM,
    )

    # Snapshot do criador (strings para flexibilidade de integração)
    created_by = models.CharField(max_length=128, db_index=True)
    created_by_name = models.CharField(max_length=120, blank=True)
    created_by_email = models.CharField(max_length=254, blank=True)

    assigned_to = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        db_index=True,
    )
    assigned_to_name = models.CharField(max_length=120, null=True, blank=True)

    attachments = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    # Sem auto_now: updated_at só avança via save/touch do repositório
    updated_at = models.DateTimeField(default=timezone.now)

    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'tickets'
        verbose_name = 'Ticket'
        verbose_name_plural = 'Tickets'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='tickets_status_e2c6b1_idx'),
            models.Index(fields=['type', 'created_at'], name='tickets_type_4b1f0a_idx'),
            models.Index(fields=['assigned_to', 'status'], name='tickets_assigne_7d2e3c_idx'),
            models.Index(fields=['created_by', 'created_at'], name='tickets_created_9a8f21_idx'),
        ]

    def __str__(self):
        return f"[{self.number}] {self.subject}"

    def __repr__(self):
        return f"<TicketModel number={self.number} status={self.status} v{self.version}>"


class MessageModel(models.Model):
    """
    Mensagens de um ticket (append-only).

    Nunca atualizadas nem removidas depois de gravadas.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    ticket = models.ForeignKey(
        TicketModel,
        on_delete=models.PROTECT,
        related_name='messages',
    )

    sender_id = models.CharField(max_length=128, db_index=True)
    sender_name = models.CharField(max_length=120, blank=True)
    sender_role = models.CharField(max_length=20, blank=True)

    body = models.TextField()

    is_internal = models.BooleanField(default=False)
    is_system = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ticket_messages'
        verbose_name = 'Mensagem'
        verbose_name_plural = 'Mensagens'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['ticket', 'created_at'], name='ticket_mess_ticket__5c3d8e_idx'),
        ]

    def __str__(self):
        kind = 'system' if self.is_system else 'internal' if self.is_internal else 'reply'
        return f"{kind} by {self.sender_name} @ {self.created_at}"


class NotificationModel(models.Model):
    """Feed de notificações por destinatário."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    recipient_id = models.CharField(max_length=128)

    ticket_id = models.CharField(max_length=36, db_index=True)
    ticket_number = models.CharField(max_length=32)

    kind = models.CharField(max_length=30)

    message = models.CharField(max_length=300)

    event_id = models.CharField(max_length=36)

    read = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)

    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'notifications'
        verbose_name = 'Notificação'
        verbose_name_plural = 'Notificações'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['event_id', 'recipient_id'],
                name='unique_notification_per_event_recipient',
            ),
        ]
        indexes = [
            models.Index(fields=['recipient_id', 'read', 'created_at'], name='notificatio_recipie_1f7a2b_idx'),
        ]

    def __str__(self):
        return f"{self.recipient_id}: {self.message}"


class DomainEventModel(models.Model):
    """
    Event Store genérico para Domain Events.

    Gravado na mesma transação da mutação que gerou o evento.
    Serve para auditoria e para reprocessar notificações.
    """

    event_id = models.CharField(
        max_length=36,
        primary_key=True,
        help_text="UUID único do evento"
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo do evento (ex: TicketCreated)"
    )

    aggregate_type = models.CharField(max_length=100, db_index=True)

    aggregate_id = models.CharField(max_length=128, db_index=True)

    event_data = models.JSONField(default=dict)

    version = models.IntegerField(default=1, help_text="Versão do schema do evento")

    actor_id = models.CharField(max_length=128, blank=True, db_index=True)

    occurred_at = models.DateTimeField()

    recorded_at = models.DateTimeField(auto_now_add=True)

    sequence = models.BigIntegerField(
        default=0,
        help_text="Sequência do evento no agregado"
    )

    class Meta:
        db_table = 'domain_events'
        verbose_name = 'Evento de Domínio'
        verbose_name_plural = 'Eventos de Domínio'
        ordering = ['occurred_at', 'sequence']
        indexes = [
            models.Index(fields=['aggregate_id', 'sequence'], name='domain_even_aggrega_3e9b4c_idx'),
            models.Index(fields=['event_type', 'recorded_at'], name='domain_even_event_t_8c1d5f_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['aggregate_id', 'sequence'],
                name='unique_event_sequence_per_aggregate',
            ),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.aggregate_id[:8]} @ {self.occurred_at}"
