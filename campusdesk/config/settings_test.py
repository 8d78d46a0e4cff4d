"""
Settings para a suíte de testes.

SQLite em memória, Celery eager e publicação síncrona.
"""

from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

EVENT_PUBLISHER_MODE = 'sync'

TICKET_NUMBER_PREFIX = 'ECPS'
REOPEN_ON_REPLY = False
STRICT_STATUS_TRANSITIONS = False
CONCEAL_FORBIDDEN_TICKETS = False

LOGGING['root']['level'] = 'WARNING'  # noqa: F405

# caplog captura pelo logger raiz
for _name in ('campusdesk.core', 'campusdesk.adapters'):
    LOGGING['loggers'][_name].update(handlers=[], propagate=True)  # noqa: F405
