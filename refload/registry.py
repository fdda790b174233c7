"""Type Registry — namespace URI → PackageDescriptor.

The registry is the one piece of shared, mutable state. It is an explicit
object handed to whoever needs it (loaders receive ``registry.resolve`` as
their type resolver), so tests can build an isolated registry each.
``default_registry()`` returns a process-wide instance for callers that
want one.

Registering a package under a namespace URI that is already taken
replaces the previous package and logs a warning.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from .errors import UnknownClass, UnknownPackage
from .package import PackageDescriptor
from .types import ClassDescriptor

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Maps namespace URIs to registered, frozen packages."""

    def __init__(self, packages: Iterable[PackageDescriptor] = ()) -> None:
        self._packages: dict[str, PackageDescriptor] = {}
        self._lock = threading.RLock()
        self.register_all(packages)

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    def register(self, package: PackageDescriptor) -> None:
        """Insert or replace the entry for ``package.namespace_uri``.

        The package is frozen first, so it can no longer change once
        readers can see it.
        """
        if not package.namespace_uri:
            raise ValueError("Cannot register a package without a namespace URI")
        package.freeze()
        with self._lock:
            previous = self._packages.get(package.namespace_uri)
            if previous is not None and previous is not package:
                logger.warning(
                    "Replacing package registered under %s", package.namespace_uri
                )
            self._packages[package.namespace_uri] = package
        logger.info(
            "Registered package %s (%d classes)",
            package.namespace_uri,
            len(package.classes),
        )

    def register_all(self, packages: Iterable[PackageDescriptor]) -> None:
        for package in packages:
            self.register(package)

    def unregister(self, namespace_uri: str) -> PackageDescriptor:
        with self._lock:
            try:
                return self._packages.pop(namespace_uri)
            except KeyError:
                raise UnknownPackage(namespace_uri) from None

    # -----------------------------------------------------------------------
    # Resolution
    # -----------------------------------------------------------------------

    def get_package(self, namespace_uri: str) -> PackageDescriptor:
        with self._lock:
            package = self._packages.get(namespace_uri)
        if package is None:
            raise UnknownPackage(namespace_uri)
        return package

    def resolve(self, namespace_uri: str, class_name: str) -> ClassDescriptor:
        """Return the class ``class_name`` of the package at ``namespace_uri``."""
        package = self.get_package(namespace_uri)
        cls = package.get_class(class_name)
        if cls is None:
            raise UnknownClass(namespace_uri, class_name)
        return cls

    def namespaces(self) -> list[str]:
        with self._lock:
            return list(self._packages)

    def __contains__(self, namespace_uri: object) -> bool:
        with self._lock:
            return namespace_uri in self._packages

    def __len__(self) -> int:
        with self._lock:
            return len(self._packages)

    def __repr__(self) -> str:
        return f"TypeRegistry({len(self)} packages)"


_default_registry: TypeRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> TypeRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = TypeRegistry()
        return _default_registry
