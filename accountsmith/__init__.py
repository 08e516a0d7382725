"""
Accountsmith - Declarative, idempotent account provisioning.

Describe an operating-system account (identity, shell, home directory, group
membership, SSH access) and Accountsmith computes the resources that make it
up and the order in which an external engine must create or remove them:

- Spec resolution fills in every derived default
- SSH key consolidation merges the legacy key with the ssh_keys mapping
- Planning orders group, user, directories and keys, reversed on removal
- Emission produces descriptors whose prerequisites form a partial order

Accountsmith performs no OS mutation itself.
"""

from .core import AccountProvisioner, BatchResult, ProvisioningPlan
from .errors import AccountsmithError, ConfigurationError, DependencyError, ValidationError
from .settings import AccountsmithSettings, get_settings, reload_settings

__version__ = "0.1.0"
__all__ = [
    "AccountProvisioner",
    "AccountsmithError",
    "AccountsmithSettings",
    "BatchResult",
    "ConfigurationError",
    "DependencyError",
    "ProvisioningPlan",
    "ValidationError",
    "get_settings",
    "reload_settings",
]
