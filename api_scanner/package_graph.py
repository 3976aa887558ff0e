"""Package graph model.

Built from the JSON printed by ``swift package describe --type json``:

    {
      "name": "Foo",
      "path": "/src/Foo",
      "products": [
        {"name": "Foo", "type": {"library": ["automatic"]}, "targets": ["Foo"]}
      ],
      "targets": [
        {"name": "Foo", "c99name": "Foo", "type": "library",
         "module_type": "SwiftTarget"}
      ]
    }
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple


class ProductKind(Enum):
    """Kind of a package product"""
    LIBRARY = "library"
    EXECUTABLE = "executable"
    PLUGIN = "plugin"
    SNIPPET = "snippet"
    MACRO = "macro"
    TEST = "test"

    @property
    def is_library(self) -> bool:
        return self is ProductKind.LIBRARY


class TargetKind(Enum):
    """Kind of a package target"""
    LIBRARY = "library"
    EXECUTABLE = "executable"
    TEST = "test"
    PLUGIN = "plugin"
    MACRO = "macro"
    SYSTEM = "system-target"
    BINARY = "binary"
    SNIPPET = "snippet"


class Language(Enum):
    """Implementation language of a target's sources"""
    SWIFT = "swift"
    CLANG = "clang"
    OTHER = "other"

    @classmethod
    def from_module_type(cls, module_type: str) -> "Language":
        if module_type == "SwiftTarget":
            return cls.SWIFT
        if module_type == "ClangTarget":
            return cls.CLANG
        return cls.OTHER


@dataclass(frozen=True)
class Target:
    name: str
    c99name: str
    kind: TargetKind
    language: Language

    @property
    def is_diffable(self) -> bool:
        """True for Swift library targets, the only ones the digester handles."""
        return self.kind is TargetKind.LIBRARY and self.language is Language.SWIFT


@dataclass(frozen=True)
class Product:
    name: str
    kind: ProductKind
    targets: Tuple[Target, ...] = ()


@dataclass
class Package:
    """A single package with its products and targets."""
    name: str
    path: Optional[Path] = None
    products: List[Product] = field(default_factory=list)
    targets: List[Target] = field(default_factory=list)

    @classmethod
    def from_description(cls, data: Dict[str, Any]) -> "Package":
        """Build a Package from ``swift package describe`` JSON.

        Raises:
            ValueError: If the description is malformed or uses an unknown
                product or target type
        """
        try:
            targets = [_parse_target(raw) for raw in data.get("targets", [])]
            by_name = {target.name: target for target in targets}
            products = []
            for raw in data.get("products", []):
                members = []
                for target_name in raw.get("targets", []):
                    if target_name not in by_name:
                        raise ValueError(
                            f"Product '{raw['name']}' references unknown target '{target_name}'"
                        )
                    members.append(by_name[target_name])
                products.append(Product(
                    name=raw["name"],
                    kind=_parse_product_kind(raw.get("type")),
                    targets=tuple(members),
                ))
            path = data.get("path")
            return cls(
                name=data["name"],
                path=Path(path) if path else None,
                products=products,
                targets=targets,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed package description: {e!r}") from e


def _parse_product_kind(raw_type: Any) -> ProductKind:
    # "type" is an object with a single key, e.g. {"library": ["automatic"]}
    if isinstance(raw_type, dict) and len(raw_type) == 1:
        key = next(iter(raw_type))
    elif isinstance(raw_type, str):
        key = raw_type
    else:
        raise ValueError(f"Unsupported product type: {raw_type!r}")
    try:
        return ProductKind(key)
    except ValueError:
        raise ValueError(f"Unsupported product type: {key!r}") from None


def _parse_target(raw: Dict[str, Any]) -> Target:
    try:
        kind = TargetKind(raw["type"])
    except ValueError:
        raise ValueError(f"Unsupported target type: {raw['type']!r}") from None
    return Target(
        name=raw["name"],
        c99name=raw.get("c99name") or raw["name"],
        kind=kind,
        language=Language.from_module_type(raw.get("module_type", "")),
    )


@dataclass
class PackageGraph:
    """Root packages of the package being diffed."""
    root_packages: List[Package] = field(default_factory=list)

    @classmethod
    def from_description(cls, data: Dict[str, Any]) -> "PackageGraph":
        return cls(root_packages=[Package.from_description(data)])

    def find_product(self, name: str) -> Optional[Product]:
        for package in self.root_packages:
            for product in package.products:
                if product.name == name:
                    return product
        return None

    def find_target(self, name: str) -> Optional[Target]:
        for package in self.root_packages:
            for target in package.targets:
                if target.name == name:
                    return target
        return None

    @property
    def module_names(self) -> Set[str]:
        """Module names of every target in the root packages."""
        return {
            target.c99name
            for package in self.root_packages
            for target in package.targets
        }

    @property
    def api_digester_modules(self) -> Set[str]:
        """Swift modules that are part of a library product."""
        return {
            target.c99name
            for package in self.root_packages
            for product in package.products
            if product.kind.is_library
            for target in product.targets
            if target.language is Language.SWIFT
        }
