"""Module registry implementation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from rollcall.core.registry.models import (
    InitReport,
    ModuleEntry,
    ModuleFactory,
    ModuleState,
    parameter_name,
)
from rollcall.core.result import ErrorKind, Result

logger = structlog.get_logger(__name__)


class ModuleRegistry:
    """Registers named module factories and builds them in dependency order.

    Every module is instantiated at most once. Dependencies are initialized
    depth-first before their dependents and injected into the factory as
    keyword arguments named after the dependency. Failures are logged and
    reported through ``Result`` values; nothing here raises on a bad module.
    """

    def __init__(self) -> None:
        self._modules: dict[str, ModuleEntry] = {}
        self._order: list[str] = []

    # ------------------------------------------------------------------
    # Registration

    def register(
        self,
        name: str,
        factory: ModuleFactory,
        dependencies: Iterable[str] | None = None,
        *,
        allow_missing: bool = True,
    ) -> Result[None]:
        """
        Register a module factory.

        Args:
            name: Unique module name
            factory: Callable building the instance from its dependencies
            dependencies: Names of the modules this one needs, in order
            allow_missing: Still build this module (passing None) when a
                dependency cannot be initialized

        Returns:
            Success, or the reason the registration was ignored
        """
        if not isinstance(name, str) or not name.strip():
            logger.error("Module name must be a non-empty string", name=name)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "module name must be a non-empty string")

        if not callable(factory):
            logger.error("Module factory must be callable", name=name)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, f"factory for '{name}' is not callable")

        deps = tuple(dependencies or ())
        problem = self._check_dependencies(name, deps)
        if problem:
            logger.error("Invalid dependency list", name=name, dependencies=list(deps), error=problem)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, problem)

        if name in self._modules:
            logger.warning("Module already registered, keeping the first registration", name=name)
            return Result.failure(ErrorKind.DUPLICATE, f"module '{name}' is already registered")

        self._modules[name] = ModuleEntry(
            name=name,
            factory=factory,
            dependencies=deps,
            allow_missing=allow_missing,
        )
        logger.debug("Module registered", name=name, dependencies=list(deps))
        return Result.success()

    @staticmethod
    def _check_dependencies(name: str, deps: tuple[str, ...]) -> str | None:
        seen: set[str] = set()
        for dep in deps:
            if not isinstance(dep, str) or not dep.strip():
                return f"dependency names of '{name}' must be non-empty strings"
            if dep == name:
                return f"module '{name}' cannot depend on itself"
            if dep in seen:
                return f"module '{name}' lists dependency '{dep}' twice"
            seen.add(dep)
        return None

    def has(self, name: str) -> bool:
        """Check if a module is registered."""
        return name in self._modules

    @property
    def registered(self) -> list[str]:
        """Module names in registration order."""
        return list(self._modules)

    def state_of(self, name: str) -> ModuleState | None:
        entry = self._modules.get(name)
        return entry.state if entry else None

    def dependencies_of(self, name: str) -> list[str]:
        """Direct dependencies as declared at registration."""
        entry = self._modules.get(name)
        return list(entry.dependencies) if entry else []

    # ------------------------------------------------------------------
    # Resolution

    def resolve_dependencies(self, name: str) -> list[str]:
        """
        Transitive dependencies of a module, dependencies first.

        Cycles do not abort resolution: the edge closing the cycle is
        dropped and a warning is logged.

        Args:
            name: Module to resolve

        Returns:
            Ordered, de-duplicated dependency names (excluding ``name``)
        """
        if name not in self._modules:
            logger.warning("Module not registered", name=name)
            return []

        resolved: list[str] = []
        self._resolve(name, path=[], done=set(), resolved=resolved)
        return resolved

    def _resolve(self, name: str, path: list[str], done: set[str], resolved: list[str]) -> None:
        path.append(name)
        for dep in self._modules[name].dependencies:
            if dep in path:
                cycle = path[path.index(dep) :] + [dep]
                logger.warning("Circular dependency detected", module=name, cycle=" -> ".join(cycle))
                continue
            if dep not in done and dep in self._modules:
                self._resolve(dep, path, done, resolved)
            if dep not in resolved:
                resolved.append(dep)
        path.pop()
        done.add(name)

    # ------------------------------------------------------------------
    # Initialization

    def init(self, name: str) -> Result[Any]:
        """
        Initialize a module and, first, its dependencies.

        Args:
            name: Module to initialize

        Returns:
            The module instance, or the reason it could not be built
        """
        entry = self._modules.get(name)
        if entry is None:
            logger.error("Cannot initialize unregistered module", name=name)
            return Result.failure(ErrorKind.NOT_FOUND, f"module '{name}' is not registered")

        if entry.state is ModuleState.INITIALIZED:
            return Result.success(entry.instance)
        if entry.state is ModuleState.INITIALIZING:
            logger.warning("Circular dependency reached during initialization", name=name)
            return Result.failure(ErrorKind.CYCLE, f"module '{name}' is part of a dependency cycle")
        if entry.state is ModuleState.FAILED:
            return Result.failure(entry.error or ErrorKind.FACTORY_ERROR, entry.error_message)

        entry.state = ModuleState.INITIALIZING

        kwargs: dict[str, Any] = {}
        missing: list[str] = []
        for dep in entry.dependencies:
            dep_result = self.init(dep)
            if not dep_result:
                logger.error(
                    "Dependency failed to initialize",
                    module=name,
                    dependency=dep,
                    error=dep_result.message,
                )
                missing.append(dep)
            kwargs[parameter_name(dep)] = dep_result.value if dep_result else None

        if missing and not entry.allow_missing:
            message = f"dependencies of '{name}' unavailable: {', '.join(missing)}"
            entry.mark_failed(ErrorKind.DEPENDENCY_FAILED, message)
            return Result.failure(ErrorKind.DEPENDENCY_FAILED, message)

        try:
            instance = entry.factory(**kwargs)
        except Exception as e:
            logger.exception("Module factory raised", name=name, error=str(e))
            entry.mark_failed(ErrorKind.FACTORY_ERROR, str(e))
            return Result.failure(ErrorKind.FACTORY_ERROR, f"factory for '{name}' raised: {e}")

        if instance is None or instance is False:
            logger.error("Module factory returned no instance", name=name)
            entry.mark_failed(ErrorKind.FACTORY_EMPTY, "factory returned no instance")
            return Result.failure(ErrorKind.FACTORY_EMPTY, f"factory for '{name}' returned no instance")

        entry.instance = instance
        entry.state = ModuleState.INITIALIZED
        self._order.append(name)

        hook = getattr(instance, "init", None)
        if callable(hook):
            try:
                hook()
            except Exception as e:
                logger.exception("Module init hook raised", name=name, error=str(e))

        logger.debug("Module initialized", name=name, missing=missing or None)
        return Result.success(instance)

    def init_all(self) -> InitReport:
        """
        Initialize every registered module, dependencies first.

        Returns:
            Which modules succeeded and which failed; each appears once
        """
        report = InitReport()
        for name in list(self._modules):
            for target in [*self.resolve_dependencies(name), name]:
                if target in report:
                    continue
                if self.init(target):
                    report.succeeded.append(target)
                else:
                    report.failed.append(target)

        logger.info(
            "Modules initialized",
            succeeded=len(report.succeeded),
            failed=report.failed or None,
        )
        return report

    # ------------------------------------------------------------------
    # Access

    def get(self, name: str) -> Any:
        """Initialized instance of a module, or None. Never initializes."""
        entry = self._modules.get(name)
        if entry is None:
            logger.warning("Module not registered", name=name)
            return None
        if entry.state is not ModuleState.INITIALIZED:
            logger.warning("Module not initialized", name=name, state=entry.state.value)
            return None
        return entry.instance

    @property
    def initialization_order(self) -> list[str]:
        """Names in the order their factories succeeded."""
        return list(self._order)

    def status(self) -> dict[str, Any]:
        """Get registry status."""
        states = {name: entry.state for name, entry in self._modules.items()}
        return {
            "total_modules": len(self._modules),
            "initialized_count": len(self._order),
            "initialized_modules": list(self._order),
            "pending_modules": [n for n, s in states.items() if s is ModuleState.REGISTERED],
            "failed_modules": [n for n, s in states.items() if s is ModuleState.FAILED],
        }

    def reset(self) -> None:
        """Drop every instance and failure; all modules return to registered."""
        for entry in self._modules.values():
            entry.clear()
        self._order.clear()
