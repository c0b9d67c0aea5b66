"""fieldchecks - declarative field validation for nested Python values.

fieldchecks walks records (dataclasses and pydantic models), sequences and
mappings and applies the rules attached to record fields, together with the
self-checks of the values it visits.
"""

__version__ = "0.3.0"
__author__ = "fieldchecks contributors"
__description__ = "Declarative field validation for nested Python values"

from fieldchecks.checker import Checkable, Checker, check, check_all, configure
from fieldchecks.config import CheckerConfig, Mode
from fieldchecks.errors import (
    SKIP,
    BadSyntax,
    CheckError,
    CyclicGraph,
    Deprecated,
    ErrorClass,
    MethodNotFound,
    NoMatch,
    Skip,
    UnknownCheck,
    ValueRequired,
    ValueUnexpected,
    WrongSignatureMethod,
    filter_by_class,
)
from fieldchecks.shapes import checked
from fieldchecks.walker import Node, walk

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "Checkable",
    "Checker",
    "CheckerConfig",
    "Mode",
    "ErrorClass",
    "check",
    "check_all",
    "configure",
    "filter_by_class",
    "checked",
    "walk",
    "Node",
    "SKIP",
    "Skip",
    "CheckError",
    "ValueRequired",
    "ValueUnexpected",
    "Deprecated",
    "BadSyntax",
    "NoMatch",
    "WrongSignatureMethod",
    "MethodNotFound",
    "UnknownCheck",
    "CyclicGraph",
]
