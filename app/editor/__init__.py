from .mutator import (
    IndexOutOfRange,
    InvalidPath,
    SectionMutationError,
    UnknownSection,
    ValidationResult,
    add_item,
    remove_item,
    update_scalar,
    validate,
)
from .sections import SECTION_SPECS, SectionKind, SectionSpec, lookup_section

__all__ = [
    "SectionKind",
    "SectionSpec",
    "SECTION_SPECS",
    "lookup_section",
    "SectionMutationError",
    "InvalidPath",
    "IndexOutOfRange",
    "UnknownSection",
    "ValidationResult",
    "update_scalar",
    "add_item",
    "remove_item",
    "validate",
]
