"""
Accountsmith Core - resolve, consolidate, plan and emit account resources.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .emitter import emit
from .errors import DependencyError, ValidationError
from .keys import DEFAULT_KEY_TYPE, consolidate
from .models import AccountSpec, Descriptor, ResourceOp, SSHKeyEntry
from .osinfo import HostOSInfo, OSInfo, StaticOSInfo
from .planner import plan
from .resolver import parse_params, resolve
from .settings import get_settings

logger = logging.getLogger(__name__)


def topological_order(descriptors: Iterable[Descriptor]) -> List[Descriptor]:
    """Return descriptors so that every prerequisite comes before its dependents.

    This method performs the following operations:
    1. Index descriptors by id and check every prerequisite exists
    2. Cycle Detection: DFS over the requires edges
    3. Topological Sort: prerequisites first, input order otherwise

    Args:
        descriptors: Descriptors with requires edges

    Returns:
        Descriptors in a valid sequential application order

    Raises:
        DependencyError: If an edge names an unknown descriptor or edges form a cycle

    Example:
        # Given: key requires ssh dir, ssh dir requires home
        # Returns: [home, ssh dir, key]
    """
    descriptors = list(descriptors)
    by_id: Dict[str, Descriptor] = {}
    for descriptor in descriptors:
        if descriptor.id in by_id:
            raise DependencyError(f"Duplicate resource: {descriptor.id}")
        by_id[descriptor.id] = descriptor

    for descriptor in descriptors:
        for required in descriptor.requires:
            if required not in by_id:
                raise DependencyError(
                    f"{descriptor.id} requires unknown resource {required}"
                )

    # Step 1: Detect cycles using DFS
    visited = set()
    rec_stack = set()

    def detect_cycle_dfs(descriptor: Descriptor, path: List[str]) -> None:
        visited.add(descriptor.id)
        rec_stack.add(descriptor.id)
        path.append(descriptor.id)

        for required in descriptor.requires:
            if required not in visited:
                detect_cycle_dfs(by_id[required], path)
            elif required in rec_stack:
                cycle_path = path + [required]
                raise DependencyError(
                    f"Dependency cycle detected: {' → '.join(cycle_path)}"
                )

        rec_stack.remove(descriptor.id)
        path.pop()

    for descriptor in descriptors:
        if descriptor.id not in visited:
            detect_cycle_dfs(descriptor, [])

    # Step 2: Perform topological sort using DFS
    visited_topo = set()
    result = []

    def topological_dfs(descriptor: Descriptor) -> None:
        visited_topo.add(descriptor.id)

        # Visit all prerequisites first
        for required in descriptor.requires:
            if required not in visited_topo:
                topological_dfs(by_id[required])

        result.append(descriptor)

    for descriptor in descriptors:
        if descriptor.id not in visited_topo:
            topological_dfs(descriptor)

    return result


def execution_stages(descriptors: Iterable[Descriptor]) -> List[List[str]]:
    """Group descriptor ids into stages that may each run concurrently.

    A descriptor lands one stage after its latest prerequisite. Stages keep
    the input order of their members.

    Raises:
        DependencyError: Same conditions as topological_order
    """
    descriptors = list(descriptors)
    levels: Dict[str, int] = {}
    for descriptor in topological_order(descriptors):
        levels[descriptor.id] = 1 + max(
            (levels[required] for required in descriptor.requires), default=-1
        )

    stages: List[List[str]] = [[] for _ in range(max(levels.values(), default=-1) + 1)]
    for descriptor in descriptors:
        stages[levels[descriptor.id]].append(descriptor.id)
    return stages


class ProvisioningPlan(BaseModel):
    """Everything computed for one account request.

    Attributes:
        title: Request identifier
        spec: Resolved account
        keys: Consolidated SSH key entries
        operations: Operations in rank order
        descriptors: Descriptors for the convergence engine, in rank order
        warnings: Non-fatal diagnostics, such as deprecated parameters
    """

    model_config = ConfigDict(frozen=True)

    title: str
    spec: AccountSpec
    keys: tuple[SSHKeyEntry, ...] = ()
    operations: tuple[ResourceOp, ...] = ()
    descriptors: tuple[Descriptor, ...] = ()
    warnings: tuple[str, ...] = ()

    def descriptor(self, descriptor_id: str) -> Descriptor:
        """Return the descriptor with the given id.

        Raises:
            KeyError: If no descriptor has that id
        """
        for descriptor in self.descriptors:
            if descriptor.id == descriptor_id:
                return descriptor
        raise KeyError(f"No resource named '{descriptor_id}'")

    def ids(self) -> List[str]:
        return [descriptor.id for descriptor in self.descriptors]

    def stages(self) -> List[List[str]]:
        return execution_stages(self.descriptors)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible view of the plan for external appliers."""
        return {
            "title": self.title,
            "username": self.spec.username,
            "ensure": self.spec.ensure.value,
            "resources": [
                {"id": descriptor.id, **descriptor.model_dump(mode="json")}
                for descriptor in self.descriptors
            ],
            "stages": self.stages(),
            "warnings": list(self.warnings),
        }


class BatchResult(BaseModel):
    """Plans and validation errors for several independent accounts."""

    plans: Dict[str, ProvisioningPlan] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


class AccountProvisioner:
    """Main orchestrator - runs the provisioning pipeline for account requests.

    Pipeline per account:
    1. Resolve raw parameters into an AccountSpec
    2. Consolidate the legacy and mapped SSH keys
    3. Plan the ordered resource operations
    4. Emit descriptors with prerequisite edges

    The provisioner holds no state between requests; the same input always
    yields the same plan.
    """

    def __init__(
        self,
        os_info: Optional[OSInfo] = None,
        default_ssh_key_type: Optional[str] = None,
    ):
        """
        Initialize the provisioner.

        Args:
            os_info: OS family provider (defaults to settings override or host detection)
            default_ssh_key_type: Type for ssh_keys entries without one (defaults to settings)
        """
        settings = get_settings()

        if os_info is None:
            os_info = StaticOSInfo(settings.os_family) if settings.os_family else HostOSInfo()
        self.os_info = os_info
        self.default_ssh_key_type = (
            default_ssh_key_type or settings.default_ssh_key_type or DEFAULT_KEY_TYPE
        )

    def provision(self, title: str, params: Mapping[str, Any]) -> ProvisioningPlan:
        """Compute the plan for one account.

        Args:
            title: Request identifier, the username when params has none
            params: Raw account parameters

        Returns:
            ProvisioningPlan

        Raises:
            ValidationError: If the parameters are invalid; no plan is produced
        """
        logger.info(f"Planning account {title}")

        parsed = parse_params(params, title)
        spec, warnings = resolve(parsed, self.os_info.family, title=title)

        keys, key_warnings = consolidate(
            spec,
            legacy_key=parsed.ssh_key,
            legacy_type=parsed.ssh_key_type,
            key_mapping=parsed.ssh_keys,
            default_type=self.default_ssh_key_type,
        )

        operations = plan(spec, keys)
        descriptors = emit(operations)

        return ProvisioningPlan(
            title=title,
            spec=spec,
            keys=tuple(keys),
            operations=tuple(operations),
            descriptors=tuple(descriptors),
            warnings=tuple(warnings + key_warnings),
        )

    def provision_many(self, accounts: Mapping[str, Mapping[str, Any]]) -> BatchResult:
        """Compute plans for several accounts.

        Accounts are independent: a validation error aborts only the account
        it belongs to and is reported under its title.
        """
        result = BatchResult()
        for title, params in accounts.items():
            try:
                result.plans[title] = self.provision(title, params)
            except ValidationError as e:
                logger.debug(f"Account {title} rejected: {e}")
                result.errors[title] = str(e)

        logger.info(
            f"Planned {len(result.plans)} account(s), {len(result.errors)} rejected"
        )
        return result
