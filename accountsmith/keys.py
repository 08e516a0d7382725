"""
SSH key consolidation.

Merges the deprecated single-key parameters (ssh_key, ssh_key_type) and the
ssh_keys mapping into one list of SSHKeyEntry. When two entries resolve to the
same name, the later-declared entry replaces the earlier one.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import AccountSpec, SSHKeyEntry, SSHKeyParams
from .resolver import format_pydantic_errors

logger = logging.getLogger(__name__)

DEFAULT_KEY_TYPE = "ssh-rsa"

KeyMapping = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


def legacy_key_name(username: str) -> str:
    return f"{username} SSH Key"


def mapped_key_name(username: str, label: str) -> str:
    return f"{username}:{label}"


def _check_key_material(key: Optional[str], source: str, username: str) -> str:
    if not key:
        raise ValidationError(f"{source} has no key material", username)
    if any(char.isspace() for char in key):
        raise ValidationError(
            f"{source} key material must not contain whitespace; "
            "give only the base64 body without type or comment",
            username,
        )
    return key


def _iter_mapping(key_mapping: KeyMapping) -> Iterable[tuple[str, Any]]:
    if isinstance(key_mapping, Mapping):
        return key_mapping.items()
    return key_mapping


def consolidate(
    spec: AccountSpec,
    legacy_key: Optional[str] = None,
    legacy_type: Optional[str] = DEFAULT_KEY_TYPE,
    key_mapping: Optional[KeyMapping] = None,
    default_type: str = DEFAULT_KEY_TYPE,
) -> tuple[list[SSHKeyEntry], list[str]]:
    """Build the canonical SSH key entries of an account.

    Args:
        spec: Resolved account; entries inherit its username and ensure state
        legacy_key: Deprecated single key material
        legacy_type: Type of the legacy key
        key_mapping: Mapping (or sequence of pairs) of label to
            {type, key, options}
        default_type: Type for mapping entries that do not name one

    Returns:
        Tuple of the key entries in declaration order and a list of warnings

    Raises:
        ValidationError: If an entry has missing or malformed key material
    """
    entries: dict[str, SSHKeyEntry] = {}
    warnings: list[str] = []

    def add(entry: SSHKeyEntry) -> None:
        if entry.name in entries:
            message = f"SSH key '{entry.name}' is declared more than once; the last declaration wins"
            logger.debug(message)
            warnings.append(message)
        entries[entry.name] = entry

    if legacy_key:
        message = (
            f"{spec.username}: ssh_key and ssh_key_type are deprecated, "
            "use ssh_keys instead"
        )
        logger.debug(message)
        warnings.append(message)
        add(
            SSHKeyEntry(
                name=legacy_key_name(spec.username),
                type=legacy_type or DEFAULT_KEY_TYPE,
                key=_check_key_material(legacy_key, "ssh_key", spec.username),
                owner=spec.username,
                ensure=spec.ensure,
            )
        )

    if key_mapping is not None:
        for label, value in _iter_mapping(key_mapping):
            source = f"ssh_keys entry '{label}'"
            if isinstance(value, SSHKeyParams):
                params = value
            elif isinstance(value, Mapping):
                try:
                    params = SSHKeyParams.model_validate(dict(value))
                except PydanticValidationError as e:
                    raise ValidationError(
                        f"{source}: {format_pydantic_errors(e)}", spec.username
                    ) from e
            else:
                raise ValidationError(
                    f"{source} must be a mapping with a 'key', got {type(value).__name__}",
                    spec.username,
                )

            add(
                SSHKeyEntry(
                    name=mapped_key_name(spec.username, label),
                    type=params.type or default_type,
                    key=_check_key_material(params.key, source, spec.username),
                    owner=spec.username,
                    ensure=spec.ensure,
                    options=tuple(params.options),
                )
            )

    logger.debug(f"Consolidated {len(entries)} SSH key(s) for {spec.username}")
    return list(entries.values()), warnings
