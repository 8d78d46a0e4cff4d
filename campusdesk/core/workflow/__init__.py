"""
Workflow Engine - intenções do help desk sobre Sessions explícitas.
"""

from .engine import WorkflowEngine, WorkflowSettings
from .subscriptions import Subscription, SubscriptionHub

__all__ = [
    "WorkflowEngine",
    "WorkflowSettings",
    "Subscription",
    "SubscriptionHub",
]
