"""
Unit tests for RBAC permission system
"""

import asyncio

import pytest
from snytra.core.exceptions import ForbiddenError
from snytra.core.permissions import (
    Permission,
    get_permissions_for_role,
    has_permission,
    require_permission
)


def test_get_permissions_for_role():
    """Test permission retrieval for all roles"""
    # Admin and developer have every permission
    assert get_permissions_for_role("admin") == set(Permission)
    assert get_permissions_for_role("developer") == set(Permission)

    # Manager edits opening hours but not plans
    manager_perms = get_permissions_for_role("manager")
    assert Permission.SETTINGS_EDIT in manager_perms
    assert Permission.TABLES_EDIT in manager_perms
    assert Permission.PLANS_EDIT not in manager_perms

    # Staff run the floor
    staff_perms = get_permissions_for_role("staff")
    assert Permission.WAITLIST_NOTIFY in staff_perms
    assert Permission.SETTINGS_EDIT not in staff_perms

    assert get_permissions_for_role("customer") == set()


def test_role_lookup_is_case_insensitive():
    assert get_permissions_for_role("MANAGER") == get_permissions_for_role("manager")


@pytest.mark.parametrize("role", ["", None, "waiter", "superuser"])
def test_unknown_roles_have_no_permissions(role):
    assert get_permissions_for_role(role) == set()


def test_has_permission():
    """Test permission checking logic"""
    staff_perms = get_permissions_for_role("staff")

    assert has_permission(Permission.TABLES_VIEW, staff_perms)
    assert not has_permission(Permission.PLANS_EDIT, staff_perms)


def test_require_permission_allows_role():
    checker = require_permission(Permission.TABLES_EDIT)

    assert asyncio.run(checker(role="staff")) == "staff"


def test_require_permission_rejects_role():
    checker = require_permission(Permission.PLANS_EDIT)

    with pytest.raises(ForbiddenError) as exc:
        asyncio.run(checker(role="manager"))
    assert exc.value.status_code == 403
    assert exc.value.detail == "Permission required: plans:edit"
