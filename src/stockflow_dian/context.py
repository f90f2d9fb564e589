"""Contexto explícito de petición (inquilino + permisos).

ES: Cada operación recibe un RequestContext en lugar de leer un estado
    global de sesión. La autorización se evalúa en el servidor contra un
    conjunto enumerado de permisos.
EN: Every operation receives a RequestContext instead of reading global
    session state. Authorization is evaluated server-side against an
    enumerated permission set.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockflow_dian.errors import DianPermissionError


class Permission(StrEnum):
    """Permisos del módulo (formato modulo:accion)."""

    DIAN_VIEW = "dian:view"
    DIAN_CONFIG = "dian:config"
    DIAN_SEND = "dian:send"
    ACCOUNTING_VIEW = "accounting:view"
    ACCOUNTING_CREATE = "accounting:create"
    ACCOUNTING_EDIT = "accounting:edit"


class Role(StrEnum):
    """Roles con permisos por defecto."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    EMPLOYEE = "EMPLOYEE"


DEFAULT_ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.ADMIN: frozenset(Permission),
    Role.MANAGER: frozenset(
        {
            Permission.DIAN_VIEW,
            Permission.DIAN_SEND,
            Permission.ACCOUNTING_VIEW,
        }
    ),
    Role.ACCOUNTANT: frozenset(
        {
            Permission.DIAN_VIEW,
            Permission.ACCOUNTING_VIEW,
            Permission.ACCOUNTING_CREATE,
            Permission.ACCOUNTING_EDIT,
        }
    ),
    Role.EMPLOYEE: frozenset({Permission.DIAN_VIEW}),
}


class RequestContext(BaseModel):
    """Contexto de una petición autenticada.

    ES: Inmutable. El tenant_id delimita todas las lecturas y escrituras.
    EN: Immutable. tenant_id scopes every read and write.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(..., min_length=1)
    user_id: str | None = None
    permissions: frozenset[Permission] = frozenset()

    @field_validator("tenant_id")
    @classmethod
    def _strip_tenant(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Se requiere un inquilino (tenant_id vacío)."
            raise ValueError(msg)
        return value

    @classmethod
    def for_role(
        cls, tenant_id: str, role: Role, user_id: str | None = None
    ) -> RequestContext:
        """Construye un contexto con los permisos por defecto del rol."""
        return cls(
            tenant_id=tenant_id,
            user_id=user_id,
            permissions=DEFAULT_ROLE_PERMISSIONS[role],
        )

    def has(self, permission: Permission) -> bool:
        return permission in self.permissions

    def require(self, permission: Permission) -> None:
        """Levanta DianPermissionError si falta el permiso."""
        if permission not in self.permissions:
            msg = f"Permiso requerido : {permission.value}"
            raise DianPermissionError(msg)
