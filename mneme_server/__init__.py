"""
Mneme Sync Server

Reference coordinator for Mneme memory sync: per-project leases and
storage for the tracked memory files.
"""

__version__ = "1.0.0"
