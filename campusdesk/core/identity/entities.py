"""
Entidades do Domínio de Identidade.

Entidades:
- Role: Papéis fechados do help desk (enum + tabela de capacidades na Policy)
- Principal: Identidade autenticada com papel associado

Regras de Negócio Encapsuladas:
- Todo principal nasce com papel `staff`
- Nome de exibição padrão derivado do e-mail
- Principals nunca são removidos
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ValidationError


class Role(Enum):
    """
    Papéis possíveis de um principal.

    Hierarquia de capacidades (ver authorization.policy):
        staff < agent / it-agent / facility-agent < admin
    """

    STAFF = "staff"
    AGENT = "agent"
    IT_AGENT = "it-agent"
    FACILITY_AGENT = "facility-agent"
    ADMIN = "admin"

    @classmethod
    def from_string(cls, value: str) -> "Role":
        """
        Converte string para enum.

        Aceita o valor ("it-agent") ou o nome ("IT_AGENT").

        Raises:
            ValidationError: Se valor inválido
        """
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip()
        for role in cls:
            if role.value == normalized.lower():
                return role
        try:
            return cls[normalized.upper().replace("-", "_")]
        except KeyError:
            raise ValidationError(f"Papel inválido: {value}", field="role")

    @property
    def is_agent(self) -> bool:
        """Qualquer papel de atendimento (agentes e admin)."""
        return self is not Role.STAFF


@dataclass
class Principal:
    """
    Entidade de Domínio: Principal.

    Registro de identidade resolvido a partir do provedor de
    autenticação externo.

    Attributes:
        id: ID do provedor de autenticação (uid)
        email: E-mail da conta
        display_name: Nome exibido em tickets e mensagens
        role: Papel atual
        department: Departamento (opcional)
        created_at: Primeiro login
        updated_at: Última alteração de papel/perfil
    """

    id: str
    email: str = ""
    display_name: str = ""
    role: Role = Role.STAFF
    department: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    DISPLAY_NAME_MAX_LENGTH = 120

    @classmethod
    def register(
        cls,
        principal_id: str,
        email: str,
        display_name: Optional[str] = None,
    ) -> "Principal":
        """
        Factory method para o primeiro login de uma identidade.

        O papel inicial é sempre `staff`; o nome de exibição cai para a
        parte local do e-mail e, por fim, para "User".
        """
        if not principal_id:
            raise ValidationError("ID do principal é obrigatório", field="id")

        email = (email or "").strip()
        name = (display_name or "").strip()
        if not name:
            name = email.split("@")[0] if email else "User"

        return cls(
            id=principal_id,
            email=email,
            display_name=name[: cls.DISPLAY_NAME_MAX_LENGTH],
            role=Role.STAFF,
        )

    def change_role(self, new_role: Role) -> bool:
        """
        Altera o papel.

        Returns:
            True se houve mudança
        """
        if new_role == self.role:
            return False
        self.role = new_role
        self.updated_at = utcnow()
        return True

    def update_profile(
        self,
        display_name: Optional[str] = None,
        department: Optional[str] = None,
    ) -> None:
        """Atualiza nome de exibição e/ou departamento."""
        if display_name is not None:
            name = display_name.strip()
            if not name:
                raise ValidationError(
                    "Nome de exibição não pode ser vazio",
                    field="display_name",
                )
            if len(name) > self.DISPLAY_NAME_MAX_LENGTH:
                raise ValidationError(
                    f"Nome de exibição deve ter no máximo "
                    f"{self.DISPLAY_NAME_MAX_LENGTH} caracteres",
                    field="display_name",
                )
            self.display_name = name
        if department is not None:
            self.department = department.strip() or None
        self.updated_at = utcnow()

    @property
    def is_agent(self) -> bool:
        return self.role.is_agent

    def __eq__(self, other: object) -> bool:
        """Comparação por ID (identidade de entidade)."""
        if not isinstance(other, Principal):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
