"""
CrimeWatch - Role-Based Access Control (RBAC)

Permission control based on user roles.
Policies are defined in policies.yaml and enforced by route dependencies.

Security:
- Deny-by-default: All actions require explicit permission
- Role hierarchy is NOT inherited (explicit grants only)
"""

from enum import Enum
from typing import Dict, Optional, Set
from pathlib import Path

import yaml


POLICY_PATH = Path(__file__).parent / "policies.yaml"


class Permission(str, Enum):
    """Granular permissions, resource:action."""
    # Reports
    CREATE_REPORT = "reports:create"
    READ_OWN_REPORTS = "reports:read_own"
    READ_ALL_REPORTS = "reports:read_all"
    UPDATE_REPORT_STATUS = "reports:update_status"
    DELETE_REPORT = "reports:delete"

    # User management (admin only)
    READ_USERS = "users:read"
    CREATE_USERS = "users:create"


class RBACPolicy:
    """
    Manages role-to-permission mappings loaded from policies.yaml.

    Singleton: the file is read once per process.
    """

    _instance: Optional["RBACPolicy"] = None
    _policies: Dict[str, Set[str]] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_policies(POLICY_PATH)
        return cls._instance

    def _load_policies(self, policy_path: Path):
        """Load policies from YAML configuration file."""
        if not policy_path.exists():
            # Default deny-all if no policy file
            self._policies = {}
            return

        with open(policy_path, "r") as f:
            config = yaml.safe_load(f) or {}

        self._policies = {
            role: set(perms or [])
            for role, perms in config.get("roles", {}).items()
        }

    def has_permission(self, role: Optional[str], permission: Permission) -> bool:
        """
        Check if a role has a specific permission.

        Returns:
            True if permitted, False otherwise (deny-by-default)
        """
        if role is None:
            return False
        role_perms = self._policies.get(role, set())
        return permission.value in role_perms

    def get_role_permissions(self, role: str) -> Set[str]:
        """Get all permissions for a role."""
        return set(self._policies.get(role, set()))
