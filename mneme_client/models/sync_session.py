"""
Mneme Sync Client - Sync Session Model
"""

from dataclasses import dataclass


@dataclass
class SyncSession:
    """
    Process-local state for one pull/push cycle.

    lock_held survives from pull to push so the lease can be released at
    session end (or left to expire if push never runs).
    """
    enabled: bool
    project_id: str
    client_id: str
    lock_held: bool = False
