"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events de forma assíncrona
- Alimentar o feed de notificações fora do request/response

Arquitetura:
- Broker: RabbitMQ (mensagens entre Django e Workers)
- Backend: Redis (resultados de tarefas)
- Workers: Processos que executam as tarefas

Uso:
    celery -A campusdesk.config.celery worker -l INFO
"""

import os

from celery import Celery
from kombu import Exchange, Queue

# Definir módulo de settings do Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'campusdesk.config.settings')

app = Celery('campusdesk')

# Broker, backend e modo eager vêm das settings (prefixo CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    enable_utc=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    result_expires=3600,

    worker_send_task_events=True,
    task_send_sent_event=True,
)

app.conf.task_default_queue = 'default'

app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('notifications', Exchange('notifications'), routing_key='notifications.#'),
)

app.conf.task_routes = {
    'campusdesk.adapters.django_app.events.handlers.dispatch_domain_event': {'queue': 'events'},
    'campusdesk.adapters.django_app.events.handlers.handle_identity_event': {'queue': 'events'},
    'campusdesk.adapters.django_app.events.handlers.handle_notification_event': {'queue': 'notifications'},
}

app.autodiscover_tasks(
    ['campusdesk.adapters.django_app.events'],
    related_name='handlers',
)

