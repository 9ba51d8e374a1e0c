"""Module registry and dependency-ordered initialization."""

from rollcall.core.registry.manager import ModuleRegistry
from rollcall.core.registry.models import (
    InitReport,
    ModuleEntry,
    ModuleFactory,
    ModuleState,
    parameter_name,
)

__all__ = [
    "InitReport",
    "ModuleEntry",
    "ModuleFactory",
    "ModuleRegistry",
    "ModuleState",
    "parameter_name",
]
