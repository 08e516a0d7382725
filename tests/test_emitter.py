"""Tests for the resource emitter."""

import pytest

from accountsmith.emitter import emit
from accountsmith.errors import DependencyError
from accountsmith.keys import consolidate
from accountsmith.models import (
    DirectoryDescriptor,
    Ensure,
    GroupDescriptor,
    ResourceKind,
    ResourceOp,
    SSHKeyDescriptor,
    UserDescriptor,
)
from accountsmith.planner import plan
from accountsmith.resolver import resolve


def descriptors_for(params, os_family="Linux"):
    spec, _ = resolve(params, os_family)
    keys, _ = consolidate(spec, key_mapping=params.get("ssh_keys"))
    return {descriptor.id: descriptor for descriptor in emit(plan(spec, keys))}


class TestPresentDescriptors:
    """Tests for descriptors of a present account."""

    def test_descriptor_types_and_ids(self):
        """Test one descriptor per resource with stable ids."""
        descriptors = descriptors_for({"username": "alice", "ssh_keys": {"laptop": {"key": "CCC"}}})

        assert list(descriptors) == [
            "group:alice",
            "user:alice",
            "directory:/home/alice",
            "directory:/home/alice/.ssh",
            "ssh_key:alice:laptop",
        ]
        assert isinstance(descriptors["group:alice"], GroupDescriptor)
        assert isinstance(descriptors["user:alice"], UserDescriptor)
        assert isinstance(descriptors["directory:/home/alice"], DirectoryDescriptor)
        assert isinstance(descriptors["ssh_key:alice:laptop"], SSHKeyDescriptor)

    def test_prerequisites(self):
        """Test that each descriptor names the one it must follow."""
        descriptors = descriptors_for(
            {"username": "alice", "ssh_keys": {"laptop": {"key": "C"}, "work": {"key": "W"}}}
        )

        assert descriptors["group:alice"].requires == ()
        assert descriptors["user:alice"].requires == ("group:alice",)
        assert descriptors["directory:/home/alice"].requires == ("user:alice",)
        assert descriptors["directory:/home/alice/.ssh"].requires == ("directory:/home/alice",)
        assert descriptors["ssh_key:alice:laptop"].requires == ("directory:/home/alice/.ssh",)
        # Keys are not ordered relative to each other
        assert descriptors["ssh_key:alice:work"].requires == ("directory:/home/alice/.ssh",)

    def test_user_without_group_has_no_prerequisite(self):
        """Test that the user comes first when no group is managed."""
        descriptors = descriptors_for({"username": "alice", "create_group": False})
        assert "group:alice" not in descriptors
        assert descriptors["user:alice"].requires == ()
        assert descriptors["user:alice"].primary_group == "users"

    def test_user_fields(self):
        """Test that the user descriptor carries the resolved account."""
        user = descriptors_for(
            {"username": "alice", "uid": 1001, "groups": ["wheel"], "allowdupe": True}
        )["user:alice"]

        assert user.uid == 1001
        assert user.primary_group == "alice"
        assert user.supplementary_groups == ("wheel",)
        assert user.shell == "/bin/bash"
        assert user.home == "/home/alice"
        assert user.password == "!"
        assert user.allow_duplicate_uid is True
        assert user.ensure is Ensure.PRESENT

    def test_key_descriptor(self):
        """Test an ed25519 key from the mapping."""
        key = descriptors_for(
            {"username": "alice", "ssh_keys": {"laptop": {"type": "ssh-ed25519", "key": "CCC"}}}
        )["ssh_key:alice:laptop"]

        assert key.name == "alice:laptop"
        assert key.owner == "alice"
        assert key.type == "ssh-ed25519"
        assert key.key == "CCC"
        assert key.target == "/home/alice/.ssh/authorized_keys"


class TestAbsentDescriptors:
    """Tests for descriptors of an absent account."""

    def test_reversed_prerequisites(self):
        """Test that removal prerequisites run from keys to group."""
        descriptors = descriptors_for(
            {"username": "alice", "ensure": "absent", "ssh_keys": {"laptop": {"key": "C"}}}
        )

        assert descriptors["ssh_key:alice:laptop"].requires == ()
        assert descriptors["directory:/home/alice/.ssh"].requires == ("ssh_key:alice:laptop",)
        assert descriptors["directory:/home/alice"].requires == ("directory:/home/alice/.ssh",)
        assert descriptors["user:alice"].requires == ("directory:/home/alice",)
        assert descriptors["group:alice"].requires == ("user:alice",)

    def test_directories_without_ownership(self):
        """Test that removed directories carry no owner, group or mode."""
        descriptors = descriptors_for({"username": "alice", "ensure": "absent"})
        for path in ("/home/alice", "/home/alice/.ssh"):
            directory = descriptors[f"directory:{path}"]
            assert directory.ensure is Ensure.ABSENT
            assert directory.owner is None
            assert directory.group is None
            assert directory.mode is None
            assert directory.force is True


class TestEmitErrors:
    """Tests for invalid operation lists."""

    def test_duplicate_operation(self):
        """Test that two operations with the same identity are rejected."""
        operation = ResourceOp(
            kind=ResourceKind.GROUP,
            title="alice",
            ensure=Ensure.PRESENT,
            rank=0,
            payload={"name": "alice"},
        )
        with pytest.raises(DependencyError, match="group:alice"):
            emit([operation, operation])

    def test_empty(self):
        """Test that no operations emit no descriptors."""
        assert emit([]) == []
