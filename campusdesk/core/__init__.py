"""
Core Domain Layer - O Hexágono.

Este pacote contém a lógica de negócio pura do help desk escolar,
sem dependências de frameworks.
Características:
- Zero dependências externas (Django, Celery, etc.)
- 100% testável sem banco de dados
- Agnóstico a infraestrutura
"""
