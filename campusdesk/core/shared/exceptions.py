"""
Exceções de Domínio do CampusDesk.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base)
    ├── ValidationError (entrada malformada)
    ├── EntityNotFoundError (ticket/mensagem/principal inexistente)
    ├── ForbiddenError (negado pela política de autorização)
    ├── ConflictError (mutação concorrente detectada)
    ├── StoreUnavailableError (falha transitória do armazenamento)
    └── BusinessRuleViolationError (regra de negócio violada)

Política de propagação:
    Erros dos Stores e da Policy sobem sem modificação até quem
    chamou o Workflow Engine. ConflictError e StoreUnavailableError
    são marcados como `retryable`.
"""


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            engine.transition(session, ticket_id, status="Closed")
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    retryable: bool = False

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Lançada quando dados fornecidos não atendem aos requisitos
    mínimos para processamento (assunto vazio, enum inválido...).

    Example:
        if not body.strip():
            raise ValidationError("Mensagem não pode ser vazia", field="body")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Lançada quando uma busca por ID não retorna resultado.

    Example:
        ticket = repo.get_by_id(ticket_id)
        if not ticket:
            raise EntityNotFoundError(f"Ticket {ticket_id} não encontrado")
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class ForbiddenError(DomainException):
    """
    Ação negada pela política de autorização.

    Nunca é repetida automaticamente e nunca deve ser
    apresentada como EntityNotFoundError.

    Attributes:
        action: Ação negada (valor de Action)
        principal_id: Quem tentou executar
    """

    def __init__(self, message: str, action: str = None, principal_id: str = None):
        self.action = action
        self.principal_id = principal_id
        super().__init__(message, "FORBIDDEN")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.action:
            result["action"] = self.action
        return result


class ConflictError(DomainException):
    """
    Erro de concorrência/conflito de versão.

    Lançada quando o compare-and-set do armazenamento detecta que
    a entidade foi modificada por outro processo. Quem chamou deve
    repetir a intenção inteira, não remendar estado parcial.

    Example:
        if stored.version != ticket.version:
            raise ConflictError("Ticket foi modificado por outro processo")
    """

    retryable = True

    def __init__(self, message: str, entity_id: str = None):
        self.entity_id = entity_id
        super().__init__(message, "CONFLICT")


class StoreUnavailableError(DomainException):
    """
    Falha transitória do armazenamento (timeout, conexão perdida).

    Pode ser repetida com backoff.
    """

    retryable = True

    def __init__(self, message: str):
        super().__init__(message, "STORE_UNAVAILABLE")


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Usada pela máquina de estados estrita (opcional) quando uma
    transição de status não faz parte do grafo permitido.
    """

    def __init__(self, message: str, rule: str = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result
