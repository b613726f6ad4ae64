"""Concurrency — debounced scheduling and pending-key reconciliation."""

from titlerlink.concurrency.reconciler import MissReconciler, PendingKeySet
from titlerlink.concurrency.scheduler import Scheduler

__all__ = ["MissReconciler", "PendingKeySet", "Scheduler"]
