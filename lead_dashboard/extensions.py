"""
Shared instances: the process-wide lead dataset store.

Importing this module is always safe; the store starts empty.
"""
from lead_dashboard.services.store import LeadStore

lead_store = LeadStore()
