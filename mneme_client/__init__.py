"""
Mneme Sync Client

Synchronizes a project's memory files with a shared coordinator at session
start (pull) and session end (push), guarded by a per-project lease.
"""

__version__ = "1.0.0"
