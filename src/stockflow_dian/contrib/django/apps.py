"""Configuración de la aplicación Django de facturación electrónica DIAN."""

from django.apps import AppConfig


class StockflowDianConfig(AppConfig):
    """Configuración de la app Django stockflow-dian."""

    name = "stockflow_dian.contrib.django"
    label = "stockflow_dian"
    verbose_name = "Facturación electrónica DIAN"
    default_auto_field = "django.db.models.BigAutoField"
