"""Resource emitter - turns ordered operations into resource descriptors."""

import itertools
import logging
from collections.abc import Iterable

from .errors import DependencyError
from .models import (
    Descriptor,
    DirectoryDescriptor,
    GroupDescriptor,
    ResourceKind,
    ResourceOp,
    SSHKeyDescriptor,
    UserDescriptor,
)

logger = logging.getLogger(__name__)

DESCRIPTOR_TYPES = {
    ResourceKind.GROUP: GroupDescriptor,
    ResourceKind.USER: UserDescriptor,
    ResourceKind.HOME_DIR: DirectoryDescriptor,
    ResourceKind.SSH_DIR: DirectoryDescriptor,
    ResourceKind.SSH_KEY: SSHKeyDescriptor,
}


def emit(operations: Iterable[ResourceOp]) -> list[Descriptor]:
    """Convert operations into descriptors with explicit prerequisites.

    Every descriptor requires all descriptors of the nearest lower rank, which
    encodes the rank order as a partial order an engine can run concurrently.

    Args:
        operations: Planned operations

    Returns:
        Descriptors in rank order

    Raises:
        DependencyError: If two operations share an identity
    """
    ordered = sorted(operations, key=lambda operation: operation.rank)

    seen: set[str] = set()
    for operation in ordered:
        if operation.id in seen:
            raise DependencyError(f"Duplicate resource: {operation.id}")
        seen.add(operation.id)

    descriptors: list[Descriptor] = []
    previous: tuple[str, ...] = ()
    for _, group in itertools.groupby(ordered, key=lambda operation: operation.rank):
        current = list(group)
        for operation in current:
            descriptor_type = DESCRIPTOR_TYPES[operation.kind]
            descriptors.append(
                descriptor_type(
                    kind=operation.kind,
                    ensure=operation.ensure,
                    requires=previous,
                    **operation.payload,
                )
            )
        previous = tuple(operation.id for operation in current)

    logger.debug(f"Emitted {len(descriptors)} descriptor(s)")
    return descriptors
