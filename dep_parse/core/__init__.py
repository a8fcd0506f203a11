"""Core parsing logic for dep-parse."""

from .parsers import Dependency, DependencyFile, DependencySet, for_package_manager

__all__ = [
    "Dependency",
    "DependencyFile",
    "DependencySet",
    "for_package_manager",
]
