"""
Entidades do Domínio de Tickets.

Este módulo define as entidades de domínio que encapsulam
regras de negócio relacionadas a chamados de TI e de manutenção.

Entidades:
- TicketEntity: Agregado principal do domínio
- TicketType: IT Support / Facility (fixo na criação)
- TicketStatus: Estados possíveis de um ticket
- TicketPriority: Níveis de prioridade (fixo na criação)

Regras de Negócio Encapsuladas:
- Validação de dados na criação
- Atribuição com snapshot do nome do agente
- Transições de status (todas alcançáveis; grafo estrito opcional)
- Controle de versão para compare-and-set no armazenamento
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
import uuid

from campusdesk.core.identity.entities import Principal
from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import (
    BusinessRuleViolationError,
    ValidationError,
)


class _LabeledEnum(Enum):
    """Enum cujo valor é o rótulo exibido ("In Progress")."""

    @classmethod
    def from_string(cls, value: str):
        """
        Converte string para enum.

        Aceita o valor ("In Progress") ou o nome ("IN_PROGRESS"),
        sem diferenciar maiúsculas.

        Raises:
            ValidationError: Se valor inválido
        """
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip()
        for member in cls:
            if member.value.lower() == normalized.lower():
                return member
        try:
            return cls[normalized.upper().replace(" ", "_").replace("-", "_")]
        except KeyError:
            raise ValidationError(
                f"{cls._label()} inválido: {value}",
                field=cls._field(),
            )

    @classmethod
    def _label(cls) -> str:
        return cls.__name__

    @classmethod
    def _field(cls) -> str:
        return cls.__name__.lower()


class TicketType(_LabeledEnum):
    """Tipo do chamado (define qual equipe atende)."""

    IT_SUPPORT = "IT Support"
    FACILITY = "Facility"

    @classmethod
    def _label(cls) -> str:
        return "Tipo"

    @classmethod
    def _field(cls) -> str:
        return "type"

    @property
    def default_category(self) -> str:
        return "Hardware" if self is TicketType.IT_SUPPORT else "General"


class TicketStatus(_LabeledEnum):
    """
    Estados possíveis de um ticket.

    Todos os estados são mutuamente alcançáveis por ação de
    agente/admin. Open é o estado inicial; Resolved e Closed são
    terminais, mas reabríveis.

    Grafo estrito (opcional, STRICT_STATUS_TRANSITIONS):
        Open → In Progress, Pending, Urgent, Resolved, Closed
        In Progress ⇄ Pending, Urgent → Resolved
        Resolved ⇄ Closed, Resolved/Closed → Open (reabrir)
    """

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PENDING = "Pending"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    URGENT = "Urgent"

    @classmethod
    def _label(cls) -> str:
        return "Status"

    @classmethod
    def _field(cls) -> str:
        return "status"

    @property
    def is_terminal(self) -> bool:
        return self in (TicketStatus.RESOLVED, TicketStatus.CLOSED)


STRICT_TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TicketStatus.OPEN: frozenset({
        TicketStatus.IN_PROGRESS,
        TicketStatus.PENDING,
        TicketStatus.URGENT,
        TicketStatus.RESOLVED,
        TicketStatus.CLOSED,
    }),
    TicketStatus.IN_PROGRESS: frozenset({
        TicketStatus.OPEN,
        TicketStatus.PENDING,
        TicketStatus.URGENT,
        TicketStatus.RESOLVED,
    }),
    TicketStatus.PENDING: frozenset({
        TicketStatus.IN_PROGRESS,
        TicketStatus.URGENT,
        TicketStatus.RESOLVED,
        TicketStatus.CLOSED,
    }),
    TicketStatus.URGENT: frozenset({
        TicketStatus.IN_PROGRESS,
        TicketStatus.PENDING,
        TicketStatus.RESOLVED,
    }),
    TicketStatus.RESOLVED: frozenset({
        TicketStatus.CLOSED,
        TicketStatus.OPEN,
        TicketStatus.IN_PROGRESS,
    }),
    TicketStatus.CLOSED: frozenset({
        TicketStatus.OPEN,
        TicketStatus.RESOLVED,
    }),
}


class TicketPriority(_LabeledEnum):
    """Níveis de prioridade (fixos na criação)."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def _label(cls) -> str:
        return "Prioridade"

    @classmethod
    def _field(cls) -> str:
        return "priority"


IT_CATEGORIES = ("Hardware", "Software", "Network", "Printer", "Account Access", "Other")


@dataclass
class TicketEntity:
    """
    Entidade de Domínio: Ticket.

    Agregado principal do help desk. Encapsula as regras de
    criação, atribuição e mudança de status.

    Invariantes:
    - Assunto e descrição não vazios
    - assigned_to definido ⇔ assigned_to_name definido (snapshot)
    - number único e imutável ("ECPS-004211")
    - type e priority fixos após a criação
    - version incrementa a cada gravação (compare-and-set)

    Example:
        ticket = TicketEntity.create(
            number="ECPS-000042",
            ticket_type=TicketType.IT_SUPPORT,
            subject="Printer jam",
            description="Printer in room 12 keeps jamming",
            creator=alice,
        )
        ticket.assign_to(bob.id, bob.display_name)
    """

    # Identificação
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    number: str = ""

    # Dados principais
    type: TicketType = TicketType.IT_SUPPORT
    subject: str = ""
    description: str = ""
    category: str = ""

    # Estado
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM

    # Relacionamentos (snapshots de exibição)
    created_by: str = ""
    created_by_name: str = ""
    created_by_email: str = ""
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Controle de concorrência
    version: int = 0

    attachments: List[str] = field(default_factory=list)

    SUBJECT_MAX_LENGTH = 200
    DESCRIPTION_MAX_LENGTH = 5000
    CATEGORY_MAX_LENGTH = 100

    @classmethod
    def create(
        cls,
        number: str,
        ticket_type: TicketType,
        subject: str,
        description: str,
        creator: Principal,
        category: Optional[str] = None,
        priority: TicketPriority = TicketPriority.MEDIUM,
        attachments: Optional[List[str]] = None,
    ) -> "TicketEntity":
        """
        Factory method para criar ticket com validações.

        Raises:
            ValidationError: Se dados de entrada inválidos
        """
        cls._validate_subject(subject)
        cls._validate_description(description)
        if not creator or not creator.id:
            raise ValidationError("Criador é obrigatório", field="created_by")
        if not number:
            raise ValidationError("Número do ticket é obrigatório", field="number")

        category = (category or "").strip() or ticket_type.default_category
        if len(category) > cls.CATEGORY_MAX_LENGTH:
            raise ValidationError(
                f"Categoria deve ter no máximo {cls.CATEGORY_MAX_LENGTH} caracteres",
                field="category",
            )

        now = utcnow()
        return cls(
            number=number,
            type=ticket_type,
            subject=subject.strip(),
            description=description.strip(),
            category=category,
            status=TicketStatus.OPEN,
            priority=priority,
            created_by=creator.id,
            created_by_name=creator.display_name,
            created_by_email=creator.email,
            created_at=now,
            updated_at=now,
            attachments=list(attachments or []),
        )

    @classmethod
    def _validate_subject(cls, subject: str) -> None:
        if not subject or not subject.strip():
            raise ValidationError("Assunto é obrigatório", field="subject")
        if len(subject.strip()) > cls.SUBJECT_MAX_LENGTH:
            raise ValidationError(
                f"Assunto deve ter no máximo {cls.SUBJECT_MAX_LENGTH} caracteres",
                field="subject",
            )

    @classmethod
    def _validate_description(cls, description: str) -> None:
        if not description or not description.strip():
            raise ValidationError("Descrição é obrigatória", field="description")
        if len(description.strip()) > cls.DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Descrição deve ter no máximo {cls.DESCRIPTION_MAX_LENGTH} caracteres",
                field="description",
            )

    def change_status(self, new_status: TicketStatus, strict: bool = False) -> bool:
        """
        Altera status do ticket.

        Sem `strict`, qualquer status é alcançável a partir de qualquer
        outro. Com `strict`, apenas as transições de STRICT_TRANSITIONS.

        Returns:
            True se houve mudança (mesmo status é no-op)

        Raises:
            BusinessRuleViolationError: Se transição inválida no modo estrito
        """
        if new_status == self.status:
            return False

        if strict and new_status not in STRICT_TRANSITIONS[self.status]:
            raise BusinessRuleViolationError(
                f"Transição de {self.status.value} para {new_status.value} não é permitida",
                rule="invalid_status_transition",
            )

        self.status = new_status
        self.touch()
        return True

    def assign_to(self, agent_id: str, agent_name: str) -> bool:
        """
        Atribui ticket a um agente, gravando o snapshot do nome.

        Returns:
            True se houve mudança

        Raises:
            ValidationError: Se ID ou nome vazio
        """
        if not agent_id:
            raise ValidationError("ID do agente é obrigatório", field="assigned_to")
        if not agent_name:
            raise ValidationError("Nome do agente é obrigatório", field="assigned_to_name")

        if self.assigned_to == agent_id and self.assigned_to_name == agent_name:
            return False

        # Par atualizado junto: nunca um sem o outro
        self.assigned_to, self.assigned_to_name = agent_id, agent_name
        self.touch()
        return True

    def touch(self, at: Optional[datetime] = None) -> None:
        """Atualiza timestamp de modificação (nunca retrocede)."""
        at = at or utcnow()
        if at > self.updated_at:
            self.updated_at = at

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    def __repr__(self) -> str:
        return (
            f"TicketEntity("
            f"number={self.number}, "
            f"subject='{self.subject[:20]}', "
            f"status={self.status.value}, "
            f"type={self.type.value}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        """Comparação por ID (identidade de entidade)."""
        if not isinstance(other, TicketEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
