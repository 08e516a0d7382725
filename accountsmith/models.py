"""
Pydantic models for Accountsmith account provisioning.

This module contains the data models used throughout the provisioning pipeline:
- Raw input parameters (AccountParams, SSHKeyParams)
- The resolved account (AccountSpec) and its SSH key entries
- Planned resource operations (ResourceOp)
- Resource descriptors handed to the external convergence engine
"""

import posixpath
from abc import abstractmethod
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Password value that leaves the account without a usable password
DISABLED_PASSWORD = "!"

# Mode of the .ssh directory, not configurable
SSH_DIR_MODE = "0700"


# =============================================================================
# Core Enums
# =============================================================================

class Ensure(str, Enum):
    """Target state of an account and of every resource derived from it."""
    PRESENT = "present"
    ABSENT = "absent"


class ResourceKind(str, Enum):
    """The five OS-level resource kinds an account is made of."""
    GROUP = "group"
    USER = "user"
    HOME_DIR = "home_dir"
    SSH_DIR = "ssh_dir"
    SSH_KEY = "ssh_key"


# Descriptor id prefix per kind; both directory kinds are plain directories
RESOURCE_TYPES = {
    ResourceKind.GROUP: "group",
    ResourceKind.USER: "user",
    ResourceKind.HOME_DIR: "directory",
    ResourceKind.SSH_DIR: "directory",
    ResourceKind.SSH_KEY: "ssh_key",
}


def descriptor_id(kind: ResourceKind, title: str) -> str:
    """Return the identity other descriptors use to name this one as a prerequisite."""
    return f"{RESOURCE_TYPES[kind]}:{title}"


# =============================================================================
# Raw Input Models
# =============================================================================

class SSHKeyParams(BaseModel):
    """One entry of the ssh_keys mapping."""

    model_config = ConfigDict(extra="forbid")

    type: Optional[str] = None
    key: Optional[str] = None
    options: list[str] = Field(default_factory=list)


class AccountParams(BaseModel):
    """Raw account parameters as accepted from the caller.

    Nothing is derived here; defaulting that depends on other values
    (home directory, primary group, comment) happens in the resolver.
    """

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = None
    uid: Optional[int] = None
    password: str = DISABLED_PASSWORD
    shell: str = "/bin/bash"
    manage_home: bool = False
    home_dir: Optional[str] = None
    home_dir_perms: str = "0750"
    create_group: bool = True
    groups: list[str] = Field(default_factory=list)
    system: bool = False
    ssh_key: Optional[str] = None
    ssh_key_type: str = "ssh-rsa"
    ssh_keys: Optional[dict[str, SSHKeyParams]] = None
    ensure: str = Ensure.PRESENT.value
    comment: Optional[str] = None
    gid: str = "users"
    allowdupe: bool = False

    @field_validator("groups", mode="before")
    @classmethod
    def _single_group(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


# =============================================================================
# Resolved Models
# =============================================================================

class AccountSpec(BaseModel):
    """Fully resolved, defaulted description of one desired account.

    Attributes:
        username: Login name, never empty
        uid: Numeric user id, left to the OS when None
        password: Password hash or the disabling marker
        shell: Login shell
        manage_home: Whether the user primitive copies skeleton files
        home_dir_perms: Mode of the home directory when present
        create_group: Whether a dedicated group named after the user is managed
        system: Whether user and group are system accounts
        groups: Supplementary groups, sorted and unique
        ensure: Target state of the whole account
        comment: GECOS comment
        gid: Primary group when create_group is False
        allow_duplicate_uid: Forwarded to the user primitive
        home_dir_real: Absolute home directory path
        primary_group: username when create_group is True, gid otherwise
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    uid: Optional[int] = None
    password: str = DISABLED_PASSWORD
    shell: str = "/bin/bash"
    manage_home: bool = False
    home_dir_perms: str = "0750"
    create_group: bool = True
    system: bool = False
    groups: tuple[str, ...] = ()
    ensure: Ensure = Ensure.PRESENT
    comment: str
    gid: str = "users"
    allow_duplicate_uid: bool = False
    home_dir_real: str
    primary_group: str

    @property
    def present(self) -> bool:
        return self.ensure is Ensure.PRESENT

    @property
    def ssh_dir(self) -> str:
        return posixpath.join(self.home_dir_real, ".ssh")

    @property
    def authorized_keys_file(self) -> str:
        return posixpath.join(self.ssh_dir, "authorized_keys")


class SSHKeyEntry(BaseModel):
    """One authorized key of an account, after consolidation."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "ssh-rsa"
    key: str
    owner: str
    ensure: Ensure
    options: tuple[str, ...] = ()


class ResourceOp(BaseModel):
    """A planned operation on one resource.

    Operations with a lower rank must complete before any operation with a
    higher rank starts. Operations sharing a rank are unordered.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    title: str
    ensure: Ensure
    rank: int
    payload: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("payload", mode="after")
    @classmethod
    def _read_only_payload(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @property
    def id(self) -> str:
        return descriptor_id(self.kind, self.title)


# =============================================================================
# Resource Descriptors
# =============================================================================

class ResourceDescriptor(BaseModel):
    """Engine-agnostic description of one OS-level object.

    Abstract; subclasses provide ``title``.

    ``requires`` lists the ids of the descriptors that must be applied
    before this one.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    ensure: Ensure
    requires: tuple[str, ...] = ()

    @property
    @abstractmethod
    def title(self) -> str:
        """Name or path that identifies the object within its kind."""

    @property
    def id(self) -> str:
        return descriptor_id(self.kind, self.title)


class GroupDescriptor(ResourceDescriptor):
    kind: ResourceKind = ResourceKind.GROUP
    name: str
    gid: Optional[int] = None
    system: bool = False

    @property
    def title(self) -> str:
        return self.name


class UserDescriptor(ResourceDescriptor):
    kind: ResourceKind = ResourceKind.USER
    name: str
    uid: Optional[int] = None
    primary_group: str
    supplementary_groups: tuple[str, ...] = ()
    shell: str
    comment: str
    password: str
    home: str
    manage_home: bool = False
    system: bool = False
    allow_duplicate_uid: bool = False

    @property
    def title(self) -> str:
        return self.name


class DirectoryDescriptor(ResourceDescriptor):
    """Home directory or .ssh directory. Ownership is only set when present."""

    path: str
    owner: Optional[str] = None
    group: Optional[str] = None
    mode: Optional[str] = None
    force: bool = False

    @property
    def title(self) -> str:
        return self.path


class SSHKeyDescriptor(ResourceDescriptor):
    kind: ResourceKind = ResourceKind.SSH_KEY
    name: str
    owner: str
    type: str
    key: str
    target: str
    options: tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return self.name


Descriptor = Union[GroupDescriptor, UserDescriptor, DirectoryDescriptor, SSHKeyDescriptor]
