"""
Package command synthesis — turn an Operation into a shell command.

Given the package manager template from the project config, builds the
exact string that will be handed to ``sh -c`` inside the container:

    template  "apk add {args} {-y}"
    operation add git make (auto-install)
    result    "apk add git make -y"

Trust boundary: package names and flags are substituted verbatim, with
no shell quoting. They come from the user's own command line or config
file, and templates are allowed to contain shell operators (``&&``,
pipes), so quoting here would break existing configs. Callers that take
package names from anywhere less trusted must validate them first.
"""

from __future__ import annotations

import re
from typing import Sequence

from develbox.core.errors import UnsupportedOperationKind
from develbox.core.models.config import PackageManagerTemplate
from develbox.core.models.operation import Operation

ARGS_PLACEHOLDER = "{args}"
PACKAGE_PLACEHOLDER = "{package}"

# A bracket group with no nested braces, e.g. "{-y}" or "{--noconfirm}"
_BRACKET_GROUP = re.compile(r"\{([^{}]*)\}")


def apply_modifier(packages: Sequence[str], modifier: str) -> list[str]:
    """Wrap every package name with ``modifier``.

    A modifier without a ``{package}`` placeholder leaves the names
    untouched.
    """
    if PACKAGE_PLACEHOLDER not in modifier:
        return list(packages)
    return [modifier.replace(PACKAGE_PLACEHOLDER, name) for name in packages]


def resolve_brackets(command: str, auto_install: bool) -> str:
    """Unwrap (auto mode) or delete (manual mode) every ``{...}`` group."""
    if auto_install:
        return _BRACKET_GROUP.sub(r"\1", command)
    return _BRACKET_GROUP.sub("", command)


def synthesize(op: Operation, template: PackageManagerTemplate) -> str:
    """Build the shell command for ``op``.

    Raises:
        UnsupportedOperationKind: If the template has no command for
            ``op.kind``. Nothing else can fail here.
    """
    base = template.operations.template_for(op.kind)
    if base is None:
        raise UnsupportedOperationKind(op.kind.value)

    packages = " ".join(apply_modifier(op.packages, template.modifier_for(op.kind)))
    flags = " ".join(op.flags)
    if flags:
        flags += " "

    command = base.replace(ARGS_PLACEHOLDER, f"{flags}{packages}", 1)
    return resolve_brackets(command, op.auto_install)
