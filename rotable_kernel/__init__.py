"""
Rotable Kernel - component lifecycle tracking

Lifecycle rules for rotable (repairable, reinstallable) workshop parts:
- Closed status state machine with a single transition table
- 7-stage QA inspection gating
- Two-step (GL, Planner) fabrication approval
- Install/remove cycle ledger with exact hour-meter lifetime accounting
- Optimistic concurrency per component
"""

__version__ = "0.1.0"
