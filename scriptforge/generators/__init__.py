"""
Generators — plugins that emit source artifacts.

Importing this package registers the built-in generators; the registry
finds every concrete ``Generator`` subclass that has been imported.
"""

from scriptforge.generators.base import (
    ArtifactPathError,
    Generator,
    GeneratorActions,
    type_name,
    write_artifact,
)
from scriptforge.generators.tag_enum import TagEnumGenerator

__all__ = [
    "ArtifactPathError",
    "Generator",
    "GeneratorActions",
    "TagEnumGenerator",
    "type_name",
    "write_artifact",
]
