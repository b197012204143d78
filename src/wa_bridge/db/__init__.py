"""
wa_bridge.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Choose between the remote PostgreSQL store and the embedded SQLite store.
- Probe, reconcile and hand out the long-lived storage handle.
- Describe the active connection without leaking credentials.
"""


# --- Module Notes -----------------------------------------------------------
# `adapter.DatabaseAdapter` is the entrypoint; the other modules are the steps
# it drives and can be used on their own in tests.
