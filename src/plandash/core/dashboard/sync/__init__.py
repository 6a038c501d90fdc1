"""
Sync layer for the planning dashboard.

Turns the planning directory into published records.

Architecture:
- parsers/: Per-document parsers (overview, task, output files)
- scanner: Walks the planning directory and runs the parsers
- orchestrator: Manual, periodic and push sync triggers
- push: Client posting scans to a remote dashboard webhook
"""

from plandash.core.dashboard.sync.orchestrator import SyncOrchestrator
from plandash.core.dashboard.sync.push import PushError, WebhookClient
from plandash.core.dashboard.sync.scanner import DirectoryScanner

__all__ = [
    "DirectoryScanner",
    "PushError",
    "SyncOrchestrator",
    "WebhookClient",
]
