"""dep-parse - Normalized dependency records from manifests and lockfiles."""

__version__ = "0.1.0"

from .core.parsers import (
    Credential,
    Dependency,
    DependencyFile,
    DependencySet,
    for_package_manager,
)
from .errors import (
    DependencyFileNotParseable,
    DepParseError,
    MissingRequiredFile,
    PrivateSourceAuthenticationFailure,
    UnsupportedEcosystem,
)

__all__ = [
    "Credential",
    "Dependency",
    "DependencyFile",
    "DependencyFileNotParseable",
    "DependencySet",
    "DepParseError",
    "MissingRequiredFile",
    "PrivateSourceAuthenticationFailure",
    "UnsupportedEcosystem",
    "for_package_manager",
]
