"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStats)
- task_store.py: SQLite-backed storage, listeners and derived views
- task_api.py: validated create/edit/complete/delete helpers and input parsing
"""
