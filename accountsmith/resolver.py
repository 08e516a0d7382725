"""
Spec resolver - turns raw account parameters into a fully defaulted AccountSpec.

Every derived value (home directory, primary group, comment) is computed here
once; nothing downstream re-checks whether a parameter was supplied.
"""

import logging
import posixpath
import re
from collections.abc import Mapping
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import AccountParams, AccountSpec, Ensure

logger = logging.getLogger(__name__)

SOLARIS = "Solaris"

_MODE_PATTERN = re.compile(r"^[0-7]{3,4}$")


def parse_params(raw_params: Union[Mapping[str, Any], AccountParams], title: str | None = None) -> AccountParams:
    """Validate raw parameters into an AccountParams model.

    Args:
        raw_params: Parameter mapping, or an already parsed AccountParams
        title: Request identifier, used in error messages

    Returns:
        AccountParams

    Raises:
        ValidationError: If a parameter is unknown or has the wrong type
    """
    if isinstance(raw_params, AccountParams):
        return raw_params
    if not isinstance(raw_params, Mapping):
        raise ValidationError(
            f"account parameters must be a mapping, got {type(raw_params).__name__}",
            title,
        )
    try:
        return AccountParams.model_validate(dict(raw_params))
    except PydanticValidationError as e:
        raise ValidationError(format_pydantic_errors(e), title) from e


def format_pydantic_errors(error: PydanticValidationError) -> str:
    """Flatten a pydantic error into one line per offending parameter."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def normalize_ensure(value: Any, title: str | None = None) -> Ensure:
    """Map "present"/"absent" in any letter case to Ensure.

    Raises:
        ValidationError: For any other value
    """
    if isinstance(value, Ensure):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        for state in Ensure:
            if state.value == lowered:
                return state
    raise ValidationError(
        f"ensure must be 'present' or 'absent', got {value!r}", title
    )


def default_home_dir(username: str, os_family: str) -> str:
    """Return the default home directory for username on os_family.

    Solaris keeps user homes under /export/home and root's home at /.
    Every other family uses /home and /root.
    """
    if os_family.lower() == SOLARIS.lower():
        return "/" if username == "root" else f"/export/home/{username}"
    return "/root" if username == "root" else f"/home/{username}"


def resolve(
    raw_params: Union[Mapping[str, Any], AccountParams],
    os_family: str,
    title: str | None = None,
) -> tuple[AccountSpec, list[str]]:
    """Resolve raw parameters into a canonical AccountSpec.

    Args:
        raw_params: Parameter mapping or parsed AccountParams
        os_family: OS family string, only used for home directory defaults
        title: Request identifier; the username when none is given

    Returns:
        Tuple of the resolved AccountSpec and a list of warnings

    Raises:
        ValidationError: If the parameters cannot describe an account
    """
    params = parse_params(raw_params, title)
    warnings: list[str] = []

    ensure = normalize_ensure(params.ensure, title)

    username = params.username if params.username is not None else title
    if not username:
        raise ValidationError("username must be a non-empty string", title)

    if params.home_dir is not None:
        if not posixpath.isabs(params.home_dir):
            raise ValidationError(
                f"home_dir must be an absolute path, got {params.home_dir!r}", title
            )
        home_dir_real = posixpath.normpath(params.home_dir)
    else:
        home_dir_real = default_home_dir(username, os_family)

    if ensure is Ensure.ABSENT and not home_dir_real.strip("/"):
        raise ValidationError(
            f"refusing to remove {username}: home directory is /", title
        )

    if not _MODE_PATTERN.match(params.home_dir_perms):
        raise ValidationError(
            f"home_dir_perms must be an octal mode string, got {params.home_dir_perms!r}",
            title,
        )

    if params.create_group:
        primary_group = username
        if "gid" in params.model_fields_set:
            logger.debug(f"Ignoring gid={params.gid} for {username}: create_group is set")
    else:
        primary_group = params.gid

    spec = AccountSpec(
        username=username,
        uid=params.uid,
        password=params.password,
        shell=params.shell,
        manage_home=params.manage_home,
        home_dir_perms=params.home_dir_perms,
        create_group=params.create_group,
        system=params.system,
        groups=tuple(sorted(set(params.groups))),
        ensure=ensure,
        comment=params.comment if params.comment is not None else f"{username} managed user",
        gid=params.gid,
        allow_duplicate_uid=params.allowdupe,
        home_dir_real=home_dir_real,
        primary_group=primary_group,
    )

    logger.debug(
        f"Resolved account {username}: ensure={ensure.value}, "
        f"home={home_dir_real}, primary_group={primary_group}"
    )
    return spec, warnings
