import time

from partner_crm.core.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    WILDCARD,
    Permission,
    default_permissions,
    grants,
    grouped_permissions,
    list_permissions,
    unknown_permissions,
)
from partner_crm.core.role_hierarchy import Role
from partner_crm.models.role import RoleRecord
from partner_crm.services import cache_service as cache_module
from partner_crm.services.cache_service import MemoryCache
from partner_crm.services.permission_service import PermissionService


class TestRegistry:
    def test_every_permission_has_a_label(self):
        keys = {item["key"] for item in list_permissions()}
        assert keys == {perm.value for perm in Permission}
        assert all(item["label"] for item in list_permissions())

    def test_grouped_by_category(self):
        grouped = grouped_permissions()
        assert {item["key"] for item in grouped["clients"]} == {
            "clients.view", "clients.create", "clients.edit", "clients.delete",
        }
        assert "admin" in grouped and "support" in grouped

    def test_unknown_permissions(self):
        assert unknown_permissions(["clients.view", "clients.fly", "*"]) == ["clients.fly", "*"]
        assert unknown_permissions([]) == []

    def test_defaults_only_use_registered_tokens(self):
        for role, perms in DEFAULT_ROLE_PERMISSIONS.items():
            if perms == [WILDCARD]:
                continue
            assert unknown_permissions(perms) == [], role

    def test_default_permissions(self):
        assert default_permissions("SUPERADMIN") == [WILDCARD]
        assert "referrals.validate" in default_permissions("manager")
        assert "referrals.validate" not in default_permissions("partner")
        assert default_permissions("ghost") == []

    def test_grants(self):
        assert grants([WILDCARD], "admin.roles") is True
        assert grants(["clients.view"], "clients.view") is True
        assert grants(["clients.view"], "clients.edit") is False
        assert grants([], "clients.view") is False


class TestPermissionService:
    def _service(self):
        return PermissionService(MemoryCache())

    def test_admin_roles_get_wildcard(self, db, make_user):
        service = self._service()
        for role in ("superadmin", "administrator", "admin"):
            user = make_user(role)
            assert service.get_permissions(db, user) == [WILDCARD]
            assert service.has_permission(db, user, "admin.roles")

    def test_falls_back_to_defaults_without_role_record(self, db, make_user):
        user = make_user("partner")
        service = self._service()
        assert service.get_permissions(db, user) == DEFAULT_ROLE_PERMISSIONS[Role.PARTNER]
        assert service.has_any_permission(db, user, ["admin.roles", "clients.view"])
        assert not service.has_all_permissions(db, user, ["admin.roles", "clients.view"])

    def test_role_record_overrides_defaults(self, db, make_user):
        record = RoleRecord(name="partner", is_system=True, is_active=True)
        record.permissions = ["support.view"]
        db.add(record)
        db.commit()

        user = make_user("partner")
        assert self._service().get_permissions(db, user) == ["support.view"]

    def test_inactive_role_record_is_ignored(self, db, make_user):
        record = RoleRecord(name="manager", is_system=True, is_active=False)
        record.permissions = ["support.view"]
        db.add(record)
        db.commit()

        user = make_user("manager")
        assert self._service().get_permissions(db, user) == DEFAULT_ROLE_PERMISSIONS[Role.MANAGER]

    def test_unknown_role_gets_nothing(self, db, make_user):
        user = make_user("ghost")
        service = self._service()
        assert service.get_permissions(db, user) == []
        assert not service.has_any_permission(db, user, ["dashboard.view"])

    def test_permissions_are_cached_until_invalidated(self, db, make_user):
        user = make_user("partner")
        service = self._service()
        assert "clients.view" in service.get_permissions(db, user)

        record = RoleRecord(name="partner", is_system=True, is_active=True)
        record.permissions = ["support.view"]
        db.add(record)
        db.commit()
        assert "clients.view" in service.get_permissions(db, user)

        service.invalidate_user(user.id)
        assert service.get_permissions(db, user) == ["support.view"]

    def test_invalidate_all(self, db, make_user):
        first, second = make_user("partner"), make_user("manager")
        service = self._service()
        service.get_permissions(db, first)
        service.get_permissions(db, second)

        service.invalidate_all()
        assert service.cache.get(service._key(first.id)) is None
        assert service.cache.get(service._key(second.id)) is None

    def test_assigned_record_wins_over_role_name(self, db, make_user):
        system = RoleRecord(name="partner", base_role="partner", is_system=True, is_active=True)
        system.permissions = ["clients.view"]
        custom = RoleRecord(name="Vendedor", base_role="partner", is_active=True)
        custom.permissions = ["clients.view", "clients.delete"]
        db.add_all([system, custom])
        db.commit()

        seller = make_user("partner")
        seller.role_id = custom.id
        db.commit()

        service = self._service()
        assert service.get_permissions(db, seller) == ["clients.view", "clients.delete"]
        assert service.get_permissions(db, make_user("partner")) == ["clients.view"]

    def test_inactive_assigned_record_falls_back_to_base_role(self, db, make_user):
        custom = RoleRecord(name="Vendedor", base_role="partner", is_active=False)
        custom.permissions = ["admin.users"]
        db.add(custom)
        db.commit()

        seller = make_user("partner")
        seller.role_id = custom.id
        db.commit()
        assert self._service().get_permissions(db, seller) == DEFAULT_ROLE_PERMISSIONS[Role.PARTNER]

    def test_assigned_record_cannot_lift_wildcard_roles(self, db, make_user):
        custom = RoleRecord(name="Leitura", base_role="administrator", is_active=True)
        custom.permissions = ["dashboard.view"]
        db.add(custom)
        db.commit()

        admin = make_user("administrator")
        admin.role_id = custom.id
        db.commit()
        assert self._service().get_permissions(db, admin) == [WILDCARD]


class TestMemoryCache:
    def test_entries_without_ttl_never_expire(self, monkeypatch):
        cache = MemoryCache()
        cache.set("forever", "1")
        cache.set("brief", "2", ttl_seconds=5)

        real_monotonic = time.monotonic
        monkeypatch.setattr(cache_module.time, "monotonic", lambda: real_monotonic() + 10 ** 6)
        assert cache.get("forever") == "1"
        assert cache.get("brief") is None

    def test_permission_entries_are_written_without_ttl(self, db, make_user):
        cache = MemoryCache()
        service = PermissionService(cache)
        user = make_user("partner")
        service.get_permissions(db, user)
        _, expires_at = cache._data[service._key(user.id)]
        assert expires_at is None
