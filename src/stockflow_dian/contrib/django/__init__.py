"""Integración Django: modelos, almacén, asignador de consecutivos y tareas Celery."""
