"""Render provisioning plans as pyinfra operation code.

The output is source text for a pyinfra deploy file; nothing is executed here.
Operations appear in a valid sequential order of the plan's prerequisites.
"""

from collections.abc import Iterable
from typing import Any, Union

from .core import ProvisioningPlan, topological_order
from .models import (
    Descriptor,
    DirectoryDescriptor,
    Ensure,
    GroupDescriptor,
    SSHKeyDescriptor,
    UserDescriptor,
)

HEADER = "from pyinfra.operations import files, server\n"


def _format_params(params: dict[str, Any]) -> str:
    return "\n".join(f"    {key}={value!r}," for key, value in params.items())


def _operation(function: str, params: dict[str, Any], comment: str) -> str:
    return f"""
# {comment}
{function}(
{_format_params(params)}
)
"""


def _verb(descriptor: Descriptor) -> str:
    return "Create" if descriptor.ensure is Ensure.PRESENT else "Remove"


def render_group(group: GroupDescriptor) -> str:
    """Generate a pyinfra server.group operation.

    Example generated code:
        ```python
        server.group(
            name='Create group alice',
            group='alice',
            present=True,
            system=False,
        )
        ```
    """
    params = {
        "name": f"{_verb(group)} group {group.name}",
        "group": group.name,
        "present": group.ensure is Ensure.PRESENT,
        "system": group.system,
    }
    if group.gid is not None:
        params["gid"] = group.gid
    return _operation("server.group", params, f"Group: {group.name}")


def render_user(user: UserDescriptor) -> str:
    """Generate a pyinfra server.user operation.

    Removal only names the user; pyinfra ignores the remaining attributes
    when present=False.
    """
    present = user.ensure is Ensure.PRESENT
    params: dict[str, Any] = {
        "name": f"{_verb(user)} user {user.name}",
        "user": user.name,
        "present": present,
    }
    if present:
        params.update(
            {
                "home": user.home,
                "shell": user.shell,
                "group": user.primary_group,
                "groups": list(user.supplementary_groups),
                "comment": user.comment,
                "password": user.password,
                "system": user.system,
                "create_home": user.manage_home,
                "unique": not user.allow_duplicate_uid,
            }
        )
        if user.uid is not None:
            params["uid"] = user.uid
    return _operation("server.user", params, f"User: {user.name}")


def render_directory(directory: DirectoryDescriptor) -> str:
    """Generate a pyinfra files.directory operation."""
    params: dict[str, Any] = {
        "name": f"{_verb(directory)} directory {directory.path}",
        "path": directory.path,
        "present": directory.ensure is Ensure.PRESENT,
    }
    if directory.owner is not None:
        params["user"] = directory.owner
    if directory.group is not None:
        params["group"] = directory.group
    if directory.mode is not None:
        params["mode"] = directory.mode
    return _operation("files.directory", params, f"Directory: {directory.path}")


def authorized_keys_line(key: SSHKeyDescriptor) -> str:
    """Return the authorized_keys line for key: [options] type key name."""
    parts = []
    if key.options:
        parts.append(",".join(key.options))
    parts.extend([key.type, key.key, key.name])
    return " ".join(parts)


def render_ssh_key(key: SSHKeyDescriptor) -> str:
    """Generate a pyinfra files.line operation for one authorized key."""
    params = {
        "name": f"{_verb(key)} SSH key {key.name}",
        "path": key.target,
        "line": authorized_keys_line(key),
        "escape_regex_characters": True,
        "present": key.ensure is Ensure.PRESENT,
    }
    return _operation("files.line", params, f"SSH key: {key.name}")


_RENDERERS = {
    GroupDescriptor: render_group,
    UserDescriptor: render_user,
    DirectoryDescriptor: render_directory,
    SSHKeyDescriptor: render_ssh_key,
}


def render_descriptors(descriptors: Iterable[Descriptor]) -> str:
    """Render descriptors, prerequisites first, as one pyinfra deploy file body."""
    return "".join(
        _RENDERERS[type(descriptor)](descriptor)
        for descriptor in topological_order(descriptors)
    )


def render_pyinfra(plans: Union[ProvisioningPlan, Iterable[ProvisioningPlan]]) -> str:
    """Render one or more plans as a complete pyinfra deploy file.

    Args:
        plans: A plan or several independent plans

    Returns:
        str: Python source for pyinfra
    """
    if isinstance(plans, ProvisioningPlan):
        plans = [plans]

    sections = [HEADER]
    for plan in plans:
        sections.append(f"\n# Account: {plan.title} ({plan.spec.ensure.value})\n")
        sections.append(render_descriptors(plan.descriptors))
    return "".join(sections)
