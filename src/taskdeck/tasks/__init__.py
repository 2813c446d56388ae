"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority) + serialization
- task_store.py: in-memory ordered collection persisted on every mutation
- task_views.py: pure filter/search/sort pipeline and aggregate counters
"""
