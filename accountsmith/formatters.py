"""
Terraform-style output formatting for Accountsmith plans.

Symbols follow Terraform:
- `+` for resources that will be created or kept present
- `-` for resources that will be removed
"""

from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.text import Text

from .core import ProvisioningPlan
from .models import Descriptor, Ensure, RESOURCE_TYPES

# Attributes shown in the resource header instead of the body
_HIDDEN_ATTRIBUTES = {"kind", "ensure", "requires"}
_SENSITIVE_ATTRIBUTES = {"password"}


class PlanFormatter:
    """Terraform-style formatter for provisioning plans."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize formatter with Rich console."""
        self.console = console or Console()

        self.colors = {
            'create': 'green',
            'destroy': 'red',
            'header': 'bold blue',
            'attribute': 'cyan',
            'comment': 'dim',
            'warning': 'yellow',
        }

        self.symbols = {
            'create': '+',
            'destroy': '-',
        }

    def format_plan(self, plan: ProvisioningPlan) -> Text:
        """
        Format one plan showing every resource in application order.

        Args:
            plan: Provisioning plan of one account

        Returns:
            Rich Text with the formatted plan
        """
        output = Text()
        output.append(
            f"Account {plan.spec.username} ({plan.spec.ensure.value}):\n\n",
            style=self.colors['header'],
        )

        for stage_number, stage in enumerate(plan.stages(), 1):
            output.append(f"  # stage {stage_number}\n", style=self.colors['comment'])
            for descriptor_id in stage:
                self._format_descriptor(output, plan.descriptor(descriptor_id))

        for warning in plan.warnings:
            output.append(f"  Warning: {warning}\n", style=self.colors['warning'])

        output.append(self._format_summary([plan]), style=self.colors['header'])
        return output

    def format_errors(self, errors: Dict[str, str]) -> Text:
        """Format rejected accounts, one line each."""
        output = Text()
        for title, message in errors.items():
            output.append(f"  ✗ {title}: ", style=self.colors['destroy'])
            output.append(f"{message}\n")
        return output

    def print_plan(self, plan: ProvisioningPlan) -> None:
        self.console.print(self.format_plan(plan))

    def _format_descriptor(self, output: Text, descriptor: Descriptor) -> None:
        operation = 'create' if descriptor.ensure is Ensure.PRESENT else 'destroy'
        symbol = self.symbols[operation]
        color = self.colors[operation]

        resource_type = RESOURCE_TYPES[descriptor.kind]
        output.append(
            f"  {symbol} resource \"{resource_type}\" \"{descriptor.title}\" {{\n",
            style=color,
        )
        for name, value in descriptor.model_dump().items():
            if name in _HIDDEN_ATTRIBUTES or value is None:
                continue
            if name in _SENSITIVE_ATTRIBUTES:
                output.append(f"      {name} = (sensitive value)\n", style=color)
                continue
            output.append(f"      {name} = {self._format_value(value)}\n", style=color)
        if descriptor.requires:
            output.append(
                f"      requires = {self._format_value(descriptor.requires)}\n",
                style=color,
            )
        output.append("    }\n\n", style=color)

    def _format_value(self, value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self._format_value(item) for item in value) + "]"
        if isinstance(value, str):
            return f"\"{value}\""
        return str(value)

    def _format_summary(self, plans: Iterable[ProvisioningPlan]) -> str:
        create = 0
        destroy = 0
        for plan in plans:
            for descriptor in plan.descriptors:
                if descriptor.ensure is Ensure.PRESENT:
                    create += 1
                else:
                    destroy += 1
        return f"Plan: {create} to ensure present, {destroy} to remove.\n"
