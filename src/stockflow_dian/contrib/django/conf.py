"""Configuración de la facturación electrónica vía settings de Django.

ES: Acceso a los parámetros STOCKFLOW_DIAN definidos en settings.py, con
    valores por defecto, instanciación dinámica del gateway y ensamblado
    de los servicios sobre el almacén y el asignador Django.
EN: Access to the STOCKFLOW_DIAN settings, with defaults, dynamic gateway
    instantiation and service wiring over the Django store and allocator.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from stockflow_dian.accounting.bridge import AccountingBridge
from stockflow_dian.accounting.journal import JournalService
from stockflow_dian.errors import DianConfigurationError
from stockflow_dian.gateway.base import BaseDianGateway
from stockflow_dian.lifecycle.service import InvoiceLifecycle
from stockflow_dian.notes.issuer import NoteIssuer
from stockflow_dian.settings import LifecycleSettings, NumberingRetryPolicy

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, object] = {
    "GATEWAY_CLASS": None,
    "GATEWAY_API_KEY": "",
    "GATEWAY_ENVIRONMENT": "habilitacion",
    "GATEWAY_BASE_URL": None,
    "GATEWAY_TIMEOUT": 30.0,
    "NUMBER_WIDTH": 8,
    "RETRY_POLICY": NumberingRetryPolicy.REUSE.value,
    "AUTO_ACCOUNTING": True,
}


def get_setting(name: str) -> object:
    """Devuelve el valor de un parámetro STOCKFLOW_DIAN.

    ES: Busca en settings.STOCKFLOW_DIAN[name] y luego en los valores por
        defecto.
    EN: Looks up settings.STOCKFLOW_DIAN[name], then falls back to defaults.
    """
    if name not in DEFAULTS:
        msg = f"Parámetro STOCKFLOW_DIAN desconocido : {name}"
        raise KeyError(msg)
    user_settings = getattr(settings, "STOCKFLOW_DIAN", {})
    return user_settings.get(name, DEFAULTS[name])


def get_lifecycle_settings() -> LifecycleSettings:
    """Construye LifecycleSettings desde los parámetros de Django."""
    return LifecycleSettings(
        gateway_timeout=get_setting("GATEWAY_TIMEOUT"),
        number_width=get_setting("NUMBER_WIDTH"),
        retry_policy=get_setting("RETRY_POLICY"),
    )


def get_gateway_instance() -> BaseDianGateway:
    """Instancia dinámicamente el conector DIAN configurado.

    ES: Usa GATEWAY_CLASS, GATEWAY_API_KEY, GATEWAY_ENVIRONMENT y
        GATEWAY_BASE_URL para crear la instancia del conector.
    EN: Uses GATEWAY_CLASS, GATEWAY_API_KEY, GATEWAY_ENVIRONMENT and
        GATEWAY_BASE_URL to create the connector instance.

    Raises:
        DianConfigurationError: Si GATEWAY_CLASS no está configurado.
    """
    gateway_class_path = get_setting("GATEWAY_CLASS")
    if not gateway_class_path:
        msg = (
            "STOCKFLOW_DIAN['GATEWAY_CLASS'] no está configurado. "
            "Indique la ruta completa de la clase del conector."
        )
        raise DianConfigurationError(msg, missing=["GATEWAY_CLASS"])

    gateway_class = import_string(gateway_class_path)
    return gateway_class(
        api_key=get_setting("GATEWAY_API_KEY"),
        environment=get_setting("GATEWAY_ENVIRONMENT"),
        base_url=get_setting("GATEWAY_BASE_URL"),
    )


def get_lifecycle() -> InvoiceLifecycle:
    """Ensambla InvoiceLifecycle sobre el almacén y el asignador Django."""
    from stockflow_dian.contrib.django.store import (
        DjangoDocumentStore,
        DjangoSequenceAllocator,
    )

    store = DjangoDocumentStore()
    allocator = DjangoSequenceAllocator()
    lifecycle_settings = get_lifecycle_settings()
    bridge = None
    if get_setting("AUTO_ACCOUNTING"):
        bridge = AccountingBridge(JournalService(store, allocator, lifecycle_settings))
    return InvoiceLifecycle(
        store=store,
        allocator=allocator,
        gateway=get_gateway_instance(),
        settings=lifecycle_settings,
        bridge=bridge,
    )


def get_note_issuer() -> NoteIssuer:
    """Ensambla NoteIssuer sobre el ciclo de vida Django."""
    return NoteIssuer(get_lifecycle())
