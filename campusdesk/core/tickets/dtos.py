"""
Data Transfer Objects (DTOs) do Domínio de Tickets.

DTOs são estruturas simples para transportar dados entre camadas,
evitando vazamento de modelos internos (entidades) para camadas externas.

Tipos de DTOs:
- Input DTOs: Recebem dados de entrada (de Views/APIs)
- Output DTOs: Formatam dados para resposta
- Query DTOs: Filtros e paginação de listagens
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from campusdesk.core.shared.exceptions import ValidationError

from .entities import TicketEntity, TicketStatus, TicketType


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CreateTicketInputDTO:
    """
    DTO de entrada para abrir ticket.

    O criador não faz parte do DTO: é sempre o principal da sessão.

    Attributes:
        ticket_type: "IT Support" ou "Facility"
        subject: Assunto
        description: Descrição detalhada
        category: Categoria (padrão depende do tipo)
        priority: Prioridade ("Low", "Medium", "High", "Critical")
        attachments: URLs de anexos já enviados
    """

    ticket_type: str
    subject: str
    description: str
    category: Optional[str] = None
    priority: str = "Medium"
    attachments: tuple = field(default_factory=tuple)  # tuple para ser hashable

    def to_dict(self) -> dict:
        return {
            "ticket_type": self.ticket_type,
            "subject": self.subject,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "attachments": list(self.attachments),
        }


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class TicketOutputDTO:
    """DTO de saída completo com dados do ticket."""

    id: str
    number: str
    type: str
    subject: str
    description: str
    category: str
    status: str
    priority: str
    created_by: str
    created_by_name: str
    created_by_email: str
    assigned_to: Optional[str]
    assigned_to_name: Optional[str]
    created_at: datetime
    updated_at: datetime
    version: int
    attachments: List[str] = field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: TicketEntity) -> "TicketOutputDTO":
        return cls(
            id=entity.id,
            number=entity.number,
            type=entity.type.value,
            subject=entity.subject,
            description=entity.description,
            category=entity.category,
            status=entity.status.value,
            priority=entity.priority.value,
            created_by=entity.created_by,
            created_by_name=entity.created_by_name,
            created_by_email=entity.created_by_email,
            assigned_to=entity.assigned_to,
            assigned_to_name=entity.assigned_to_name,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
            attachments=list(entity.attachments),
        )

    def to_dict(self) -> dict:
        """Converte para dicionário (serialização JSON)."""
        return {
            "id": self.id,
            "number": self.number,
            "type": self.type,
            "subject": self.subject,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "priority": self.priority,
            "created_by": self.created_by,
            "created_by_name": self.created_by_name,
            "created_by_email": self.created_by_email,
            "assigned_to": self.assigned_to,
            "assigned_to_name": self.assigned_to_name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
            "attachments": list(self.attachments),
        }


@dataclass
class TicketListItemDTO:
    """
    DTO otimizado para listagens de tickets.

    Contém apenas campos necessários para exibição em lista.
    """

    id: str
    number: str
    type: str
    subject: str
    status: str
    priority: str
    created_by_name: str
    assigned_to_name: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: TicketEntity) -> "TicketListItemDTO":
        return cls(
            id=entity.id,
            number=entity.number,
            type=entity.type.value,
            subject=entity.subject,
            status=entity.status.value,
            priority=entity.priority.value,
            created_by_name=entity.created_by_name,
            assigned_to_name=entity.assigned_to_name,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "type": self.type,
            "subject": self.subject,
            "status": self.status,
            "priority": self.priority,
            "created_by_name": self.created_by_name,
            "assigned_to_name": self.assigned_to_name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# =============================================================================
# QUERY DTOs (Filtros de Busca)
# =============================================================================

@dataclass(frozen=True)
class TicketQueryDTO:
    """
    DTO para parâmetros de busca/filtro de tickets.

    Os filtros são aplicados depois do critério de visibilidade
    do principal. Ordenação fixa: created_at decrescente.

    Attributes:
        status: Filtrar por status
        ticket_type: Filtrar por tipo
        assigned_to: Filtrar por responsável
        created_by: Filtrar por criador
        search: Texto livre em number/subject/description/created_by_name
        created_since: Apenas tickets criados a partir desta data
        page: Número da página (1-indexed)
        page_size: Itens por página (None = sem paginação)
    """

    status: Optional[str] = None
    ticket_type: Optional[str] = None
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    search: Optional[str] = None
    created_since: Optional[datetime] = None
    page: int = 1
    page_size: Optional[int] = 20

    MAX_PAGE_SIZE = 100

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError("Página deve ser >= 1", field="page")
        if self.page_size is not None and not 1 <= self.page_size <= self.MAX_PAGE_SIZE:
            raise ValidationError(
                f"Itens por página deve estar entre 1 e {self.MAX_PAGE_SIZE}",
                field="page_size",
            )
        # Enums inválidos falham aqui, antes de qualquer consulta
        if self.status:
            TicketStatus.from_string(self.status)
        if self.ticket_type:
            TicketType.from_string(self.ticket_type)

    @property
    def status_enum(self) -> Optional[TicketStatus]:
        return TicketStatus.from_string(self.status) if self.status else None

    @property
    def type_enum(self) -> Optional[TicketType]:
        return TicketType.from_string(self.ticket_type) if self.ticket_type else None

    @property
    def search_text(self) -> str:
        return (self.search or "").strip().lower()

    def matches(self, ticket: TicketEntity) -> bool:
        """Aplica os filtros do usuário a uma entidade (repositórios em memória)."""
        status = self.status_enum
        if status is not None and ticket.status != status:
            return False
        ticket_type = self.type_enum
        if ticket_type is not None and ticket.type != ticket_type:
            return False
        if self.assigned_to and ticket.assigned_to != self.assigned_to:
            return False
        if self.created_by and ticket.created_by != self.created_by:
            return False
        if self.created_since and ticket.created_at < self.created_since:
            return False
        text = self.search_text
        if text:
            fields = (ticket.number, ticket.subject, ticket.description, ticket.created_by_name)
            if not any(text in (field or "").lower() for field in fields):
                return False
        return True

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "ticket_type": self.ticket_type,
            "assigned_to": self.assigned_to,
            "created_by": self.created_by,
            "search": self.search,
            "created_since": self.created_since.isoformat() if self.created_since else None,
            "page": self.page,
            "page_size": self.page_size,
        }


@dataclass
class TicketPage:
    """Página de entidades retornada pelos repositórios."""

    items: List[TicketEntity]
    total: int


@dataclass
class PaginatedResultDTO:
    """
    DTO para resultados paginados.

    Attributes:
        items: Lista de itens da página atual
        total: Total de itens (sem paginação)
        page: Página atual
        page_size: Itens por página
    """

    items: List[TicketListItemDTO]
    total: int
    page: int
    page_size: Optional[int]

    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 1 if self.total else 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }


@dataclass
class TicketChangeResultDTO:
    """
    Resultado de uma mutação de ticket.

    Attributes:
        ticket: Estado do ticket após a operação
        changed: False quando o pedido foi um no-op (mesmo status/responsável)
        previous_value: Valor anterior do campo alterado
    """

    ticket: TicketOutputDTO
    changed: bool
    previous_value: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "ticket": self.ticket.to_dict(),
            "changed": self.changed,
            "previous_value": self.previous_value,
        }
