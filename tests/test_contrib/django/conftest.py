"""Configuración pytest para las pruebas Django.

ES: Configura Django con SQLite en memoria para las pruebas.
EN: Configures Django with in-memory SQLite for tests.
"""

import django
from django.conf import settings


def pytest_configure() -> None:
    """Configura Django para las pruebas."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                },
            },
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "stockflow_dian.contrib.django",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            STOCKFLOW_DIAN={
                "GATEWAY_CLASS": (
                    "stockflow_dian.gateway.connectors.memory.MemoryDianGateway"
                ),
            },
        )
        django.setup()


import pytest  # noqa: E402

from stockflow_dian.models.config import DianConfig  # noqa: E402


@pytest.fixture
def django_store(db):
    """Almacén de documentos sobre el ORM de Django."""
    from stockflow_dian.contrib.django.store import DjangoDocumentStore

    return DjangoDocumentStore()


@pytest.fixture
def django_allocator(db):
    """Asignador de consecutivos con bloqueo de fila."""
    from stockflow_dian.contrib.django.store import DjangoSequenceAllocator

    return DjangoSequenceAllocator()


@pytest.fixture
def saved_config(django_store, dian_config: DianConfig) -> DianConfig:
    """Configuración DIAN guardada en base."""
    django_store.save_config_sync(dian_config)
    return dian_config
