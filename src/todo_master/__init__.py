# src/todo_master/__init__.py

"""
Todo Master: a small task list with interchangeable local and remote-synced stores.

Components:
- core/: models, errors, ports (Protocols) and the TaskListController
- stores/: InMemoryTaskStore, RemoteTaskStore and the SQLite document collection
- cli/ + connectors/: console presentation layer
"""

__version__ = "0.1.0"
