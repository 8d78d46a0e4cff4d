"""
Configuração do projeto CampusDesk.

Módulos:
- settings / settings_test: Configurações Django
- urls: Rotas principais
- celery: Configuração Celery para tarefas assíncronas
- container: Dependency Injection Container
"""

# Importar app Celery para que seja carregado com Django
from .celery import app as celery_app

__all__ = ('celery_app',)
