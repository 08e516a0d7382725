"""
Dependency planner - orders the resources of one account.

Creation runs group, user, home directory, .ssh directory, keys. Removal runs
the same classes in reverse, so a user is removed before its group and keys
are removed before the directory that holds them. Each operation carries the
rank of its class; operations of one class share a rank and are unordered.
"""

import logging
from collections.abc import Iterable

from .models import (
    SSH_DIR_MODE,
    AccountSpec,
    Ensure,
    ResourceKind,
    ResourceOp,
    SSHKeyEntry,
)

logger = logging.getLogger(__name__)

CREATE_ORDER = (
    ResourceKind.GROUP,
    ResourceKind.USER,
    ResourceKind.HOME_DIR,
    ResourceKind.SSH_DIR,
    ResourceKind.SSH_KEY,
)


def operation_order(ensure: Ensure) -> tuple[ResourceKind, ...]:
    """Return the resource classes in the order they are applied for ensure."""
    if ensure is Ensure.PRESENT:
        return CREATE_ORDER
    return tuple(reversed(CREATE_ORDER))


def _directory_payload(spec: AccountSpec, path: str, mode: str) -> dict:
    if spec.present:
        return {
            "path": path,
            "owner": spec.username,
            "group": spec.primary_group,
            "mode": mode,
            "force": False,
        }
    return {"path": path, "owner": None, "group": None, "mode": None, "force": True}


def plan(spec: AccountSpec, keys: Iterable[SSHKeyEntry]) -> list[ResourceOp]:
    """Build the ordered operation list for a resolved account.

    Args:
        spec: Resolved account
        keys: Consolidated SSH key entries of the account

    Returns:
        Operations sorted by rank; keys keep their declaration order
    """
    ranks = {kind: rank for rank, kind in enumerate(operation_order(spec.ensure))}

    def op(kind: ResourceKind, title: str, payload: dict, ensure: Ensure = spec.ensure) -> ResourceOp:
        return ResourceOp(
            kind=kind, title=title, ensure=ensure, rank=ranks[kind], payload=payload
        )

    operations = []

    if spec.create_group:
        operations.append(
            op(
                ResourceKind.GROUP,
                spec.username,
                {
                    "name": spec.username,
                    "gid": spec.uid,
                    "system": spec.system,
                },
            )
        )

    operations.append(
        op(
            ResourceKind.USER,
            spec.username,
            {
                "name": spec.username,
                "uid": spec.uid,
                "primary_group": spec.primary_group,
                "supplementary_groups": spec.groups,
                "shell": spec.shell,
                "comment": spec.comment,
                "password": spec.password,
                "home": spec.home_dir_real,
                "manage_home": spec.manage_home,
                "system": spec.system,
                "allow_duplicate_uid": spec.allow_duplicate_uid,
            },
        )
    )

    operations.append(
        op(
            ResourceKind.HOME_DIR,
            spec.home_dir_real,
            _directory_payload(spec, spec.home_dir_real, spec.home_dir_perms),
        )
    )
    operations.append(
        op(
            ResourceKind.SSH_DIR,
            spec.ssh_dir,
            _directory_payload(spec, spec.ssh_dir, SSH_DIR_MODE),
        )
    )

    for entry in keys:
        operations.append(
            op(
                ResourceKind.SSH_KEY,
                entry.name,
                {
                    "name": entry.name,
                    "owner": entry.owner,
                    "type": entry.type,
                    "key": entry.key,
                    "target": spec.authorized_keys_file,
                    "options": entry.options,
                },
                ensure=entry.ensure,
            )
        )

    # Stable sort, key entries stay in declaration order
    operations.sort(key=lambda operation: operation.rank)

    logger.debug(
        f"Planned {len(operations)} operation(s) for {spec.username} "
        f"({spec.ensure.value}): {[operation.id for operation in operations]}"
    )
    return operations
