"""External package index collaborators used by resolvers."""

from .base import IndexEntry, IndexLookupError, PackageIndex
from .goget import GoImportIndex, is_standard_import_path
from .pypi import PyPIIndex, normalize_project_name

__all__ = [
    "GoImportIndex",
    "IndexEntry",
    "IndexLookupError",
    "PackageIndex",
    "PyPIIndex",
    "is_standard_import_path",
    "normalize_project_name",
]
