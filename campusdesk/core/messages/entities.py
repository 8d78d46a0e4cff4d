"""
Entidades do Domínio de Mensagens.

Mensagens são append-only: respostas públicas, notas internas e
mensagens de sistema (trilha de auditoria gerada pelo engine).
"""

from dataclasses import dataclass, field
from datetime import datetime
import uuid

from campusdesk.core.identity.entities import Principal
from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ValidationError


@dataclass
class Message:
    """
    Entidade de Domínio: Mensagem de um ticket.

    Invariantes:
    - Corpo não vazio
    - Nunca alterada nem removida após gravada
    - Ordenação por (created_at, id); created_at monotônico por ticket

    Attributes:
        sender_name: Snapshot do nome do remetente
        sender_role: Snapshot do papel do remetente
        is_internal: Visível apenas para agent/admin
        is_system: Mensagem de auditoria gerada automaticamente
    """

    ticket_id: str
    sender_id: str
    body: str
    sender_name: str = ""
    sender_role: str = ""
    is_internal: bool = False
    is_system: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    BODY_MAX_LENGTH = 10000

    @classmethod
    def compose(
        cls,
        ticket_id: str,
        sender: Principal,
        body: str,
        is_internal: bool = False,
        is_system: bool = False,
    ) -> "Message":
        """
        Factory method com validações.

        Raises:
            ValidationError: Se corpo vazio ou longo demais
        """
        text = (body or "").strip()
        if not text:
            raise ValidationError("Mensagem não pode ser vazia", field="body")
        if len(text) > cls.BODY_MAX_LENGTH:
            raise ValidationError(
                f"Mensagem deve ter no máximo {cls.BODY_MAX_LENGTH} caracteres",
                field="body",
            )
        return cls(
            ticket_id=ticket_id,
            sender_id=sender.id,
            sender_name=sender.display_name,
            sender_role=sender.role.value,
            body=text,
            is_internal=is_internal or is_system,
            is_system=is_system,
        )

    @property
    def sort_key(self):
        return (self.created_at, self.id)
