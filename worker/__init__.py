# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Consumer side of the fabric
# PURPOSE: Consume subscriber queues and dispatch to handlers
# CREATED: 12 OCT 2026
# ============================================================================
"""
Worker Module

Components for the consumer side:
- consumer: ConsumeLoop, one bounded receive cycle per call
- supervisor: long-running asyncio workers, one per subscriber channel
- contracts: worker process settings
- main: worker entry point
"""

from worker.consumer import ConsumeLoop, ConsumerStats
from worker.contracts import WorkerSettings
from worker.supervisor import SubscriberWorker, WorkerStats, run_workers

__all__ = [
    "ConsumeLoop",
    "ConsumerStats",
    "SubscriberWorker",
    "WorkerStats",
    "run_workers",
    "WorkerSettings",
]
