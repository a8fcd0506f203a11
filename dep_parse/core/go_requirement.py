"""Classification of dep version strings against the constraint grammar.

dep accepts semver constraints (``^1.2.0``, ``>= 1.0, < 2.0``, ``1.x``,
``1.0.0 - 1.4.0``) in the ``version`` field, but users also put tag or branch
names there. A string that starts like a version but does not parse as a
constraint is treated as a git reference.
"""

import re
from enum import Enum
from typing import List

from packaging.version import InvalidVersion, Version

_OPERATOR = r"(?:!=|>=|<=|=|>|<|~|\^)"
_VERSION = (
    r"v?(?P<release>(?:\d+|[xX*])(?:\.(?:\d+|[xX*])){0,2})"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
)
_CLAUSE = re.compile(rf"^\s*{_OPERATOR}?\s*{_VERSION}\s*$")
_HYPHEN_RANGE = re.compile(r"^\s*(?P<low>\S+)\s+-\s+(?P<high>\S+)\s*$")
_BARE_OPERATOR = re.compile(rf"^{_OPERATOR}$")
_STARTS_ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]")


class ConstraintKind(Enum):
    """Result of probing a version string."""

    VALID = "valid"
    NOT_A_CONSTRAINT = "not_a_constraint"
    MALFORMED = "malformed"


def _valid_release(release: str) -> bool:
    """Check the numeric part of a release with ``packaging``.

    The clause pattern only admits digits and wildcards here, so for
    operands it matched this always holds; it guards against the pattern
    being widened without the operand still being a real release number.
    """
    numeric = []
    for part in release.split("."):
        if part in ("x", "X", "*"):
            break
        numeric.append(part)
    if not numeric:
        return True
    try:
        Version(".".join(numeric))
    except InvalidVersion:
        return False
    return True


def _valid_clause(clause: str) -> bool:
    match = _CLAUSE.match(clause)
    return bool(match) and _valid_release(match.group("release"))


def _clauses_in(group: str) -> List[str]:
    """Split one comma-delimited group into its space-separated clauses.

    ``>= 1.0`` and ``1.0 - 2.0`` stay whole; ``>=1.0 <2.0`` is two clauses.
    """
    tokens = group.split()
    clauses = []
    i = 0
    while i < len(tokens):
        if _BARE_OPERATOR.match(tokens[i]) and i + 1 < len(tokens):
            clauses.append(f"{tokens[i]} {tokens[i + 1]}")
            i += 2
        elif i + 2 < len(tokens) and tokens[i + 1] == "-":
            clauses.append(f"{tokens[i]} - {tokens[i + 2]}")
            i += 3
        else:
            clauses.append(tokens[i])
            i += 1
    return clauses


def _split_groups(constraint: str) -> List[str]:
    groups = []
    for alternative in constraint.split("||"):
        groups.extend(alternative.split(","))
    return groups


def parses_as_constraint(constraint: str) -> bool:
    """Whether a string is a well-formed dep version constraint."""
    groups = _split_groups(constraint)
    if not all(group.strip() for group in groups):
        return False

    for group in groups:
        for clause in _clauses_in(group):
            hyphen = _HYPHEN_RANGE.match(clause)
            if hyphen:
                if not (_valid_clause(hyphen.group("low")) and _valid_clause(hyphen.group("high"))):
                    return False
            elif not _valid_clause(clause):
                return False
    return True


def probe_constraint(version: str) -> ConstraintKind:
    """Classify a manifest version string.

    Args:
        version: Value of a declaration's ``version`` field

    Returns:
        VALID if it parses as a constraint, NOT_A_CONSTRAINT if it looks like
        a tag or branch name, MALFORMED otherwise
    """
    if parses_as_constraint(version):
        return ConstraintKind.VALID
    if _STARTS_ALPHANUMERIC.match(version):
        return ConstraintKind.NOT_A_CONSTRAINT
    return ConstraintKind.MALFORMED
