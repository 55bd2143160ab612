"""Permission registry and per-role defaults.

Permissions are a closed set of ``<category>.<action>`` tokens. Role records
may only reference tokens listed here; ``*`` is reserved for the built-in
administrative roles.
"""

import enum
from typing import Dict, Iterable, List, Optional

from partner_crm.core.role_hierarchy import ADMIN_ROLES, Role, RoleLike, parse_role

WILDCARD = "*"


class Permission(str, enum.Enum):
    DASHBOARD_VIEW = "dashboard.view"
    DASHBOARD_ANALYTICS = "dashboard.analytics"

    CLIENTS_VIEW = "clients.view"
    CLIENTS_CREATE = "clients.create"
    CLIENTS_EDIT = "clients.edit"
    CLIENTS_DELETE = "clients.delete"

    REFERRALS_VIEW = "referrals.view"
    REFERRALS_CREATE = "referrals.create"
    REFERRALS_VALIDATE = "referrals.validate"
    REFERRALS_APPROVE = "referrals.approve"

    REPORTS_VIEW = "reports.view"
    REPORTS_EXPORT = "reports.export"
    REPORTS_ALL_PARTNERS = "reports.all_partners"

    SUPPORT_VIEW = "support.view"
    SUPPORT_MANAGE = "support.manage"

    ADMIN_ACCESS = "admin.access"
    ADMIN_USERS = "admin.users"
    ADMIN_ROLES = "admin.roles"
    ADMIN_PRODUCTS = "admin.products"
    ADMIN_PRICING = "admin.pricing"
    ADMIN_NOTIFICATIONS = "admin.notifications"
    ADMIN_INTEGRATIONS = "admin.integrations"
    ADMIN_FILES = "admin.files"

    COMMISSIONS_VIEW = "commissions.view"
    COMMISSIONS_MANAGE = "commissions.manage"

    CHATBOT_VIEW = "chatbot.view"
    CHATBOT_TRAIN = "chatbot.train"

    @property
    def category(self) -> str:
        return self.value.split(".", 1)[0]


PERMISSION_LABELS: Dict[Permission, str] = {
    Permission.DASHBOARD_VIEW: "Visualizar Dashboard",
    Permission.DASHBOARD_ANALYTICS: "Ver Analytics Avançados",
    Permission.CLIENTS_VIEW: "Visualizar Clientes",
    Permission.CLIENTS_CREATE: "Criar Clientes",
    Permission.CLIENTS_EDIT: "Editar Clientes",
    Permission.CLIENTS_DELETE: "Excluir Clientes",
    Permission.REFERRALS_VIEW: "Visualizar Indicações",
    Permission.REFERRALS_CREATE: "Criar Indicações",
    Permission.REFERRALS_VALIDATE: "Validar Indicações",
    Permission.REFERRALS_APPROVE: "Aprovar/Rejeitar Indicações",
    Permission.REPORTS_VIEW: "Visualizar Relatórios",
    Permission.REPORTS_EXPORT: "Exportar Relatórios",
    Permission.REPORTS_ALL_PARTNERS: "Ver Relatórios de Todos Parceiros",
    Permission.SUPPORT_VIEW: "Visualizar Material de Apoio",
    Permission.SUPPORT_MANAGE: "Gerenciar Material de Apoio",
    Permission.ADMIN_ACCESS: "Acessar Painel Admin",
    Permission.ADMIN_USERS: "Gerenciar Usuários",
    Permission.ADMIN_ROLES: "Gerenciar Funções",
    Permission.ADMIN_PRODUCTS: "Gerenciar Produtos",
    Permission.ADMIN_PRICING: "Gerenciar Preços",
    Permission.ADMIN_NOTIFICATIONS: "Enviar Notificações",
    Permission.ADMIN_INTEGRATIONS: "Configurar Integrações",
    Permission.ADMIN_FILES: "Gerenciar Arquivos",
    Permission.COMMISSIONS_VIEW: "Visualizar Comissões",
    Permission.COMMISSIONS_MANAGE: "Gerenciar Tabelas de Comissão",
    Permission.CHATBOT_VIEW: "Ver ChatBot Analytics",
    Permission.CHATBOT_TRAIN: "Treinar ChatBot",
}

# Roles that hold every permission regardless of their role record.
WILDCARD_ROLES = frozenset({Role.SUPERADMIN}) | ADMIN_ROLES

DEFAULT_ROLE_PERMISSIONS: Dict[Role, List[str]] = {
    Role.SUPERADMIN: [WILDCARD],
    Role.ADMINISTRATOR: [WILDCARD],
    Role.ADMIN: [WILDCARD],
    Role.MANAGER: [
        "dashboard.view", "dashboard.analytics",
        "clients.view", "clients.create", "clients.edit",
        "referrals.view", "referrals.create", "referrals.validate",
        "reports.view", "reports.export", "reports.all_partners",
        "support.view",
        "commissions.view",
    ],
    Role.PARTNER: [
        "dashboard.view",
        "clients.view", "clients.create", "clients.edit",
        "referrals.view", "referrals.create",
        "reports.view",
        "support.view",
        "commissions.view",
    ],
    Role.CLIENT: ["dashboard.view"],
}


def default_permissions(role: RoleLike) -> List[str]:
    """Built-in permissions for ``role``; empty for unknown roles."""
    parsed = parse_role(role)
    if parsed is None:
        return []
    return list(DEFAULT_ROLE_PERMISSIONS[parsed])


def parse_permission(value: str) -> Optional[Permission]:
    try:
        return Permission(value)
    except ValueError:
        return None


def unknown_permissions(values: Iterable[str]) -> List[str]:
    """Tokens in ``values`` that are not registered permissions."""
    return [value for value in values if parse_permission(value) is None]


def list_permissions() -> List[dict]:
    return [
        {"key": perm.value, "label": PERMISSION_LABELS[perm], "category": perm.category}
        for perm in Permission
    ]


def grouped_permissions() -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {}
    for item in list_permissions():
        grouped.setdefault(item["category"], []).append(item)
    return grouped


def grants(held: Iterable[str], permission: str) -> bool:
    held = set(held)
    return WILDCARD in held or permission in held
