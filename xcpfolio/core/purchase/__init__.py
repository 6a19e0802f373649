"""
Purchase Orchestrator Module

Linear compose -> sign -> broadcast flow with a closed error taxonomy.
"""

from .models import InvalidTransitionError, PurchaseAttempt, PurchaseState, StateTransition
from .orchestrator import PurchaseOrchestrator, TransitionCallback

__all__ = [
    "InvalidTransitionError",
    "PurchaseAttempt",
    "PurchaseState",
    "StateTransition",
    "PurchaseOrchestrator",
    "TransitionCallback",
]
