"""
Geração de números de ticket legíveis ("ECPS-004211").

O gerador apenas propõe candidatos aleatórios; a unicidade é
garantida atomicamente pelo repositório (índice único ou verificação
sob lock), e a criação repete com novo candidato em caso de colisão.
"""

import random
import re


class TicketNumberGenerator:
    """
    Gera números no formato `<PREFIX>-<6 dígitos>`.

    Example:
        generator = TicketNumberGenerator(prefix="ECPS")
        generator.next()  # "ECPS-482913"
    """

    DIGITS = 6

    def __init__(self, prefix: str = "ECPS", rng: random.Random = None):
        prefix = (prefix or "").strip().upper()
        if not re.fullmatch(r"[A-Z][A-Z0-9]*", prefix):
            raise ValueError(f"Prefixo de número inválido: {prefix!r}")
        self.prefix = prefix
        self._rng = rng or random.SystemRandom()
        self._pattern = re.compile(rf"{re.escape(prefix)}-\d{{{self.DIGITS}}}")

    def next(self) -> str:
        suffix = self._rng.randrange(10 ** self.DIGITS)
        return f"{self.prefix}-{suffix:0{self.DIGITS}d}"

    def is_valid(self, number: str) -> bool:
        return bool(self._pattern.fullmatch(number or ""))
