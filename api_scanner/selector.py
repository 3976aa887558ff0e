"""Selection of the modules taking part in the API comparison."""

from typing import Iterable, Set

from .errors import SelectionError
from .observability import ObservabilityScope
from .package_graph import Language, PackageGraph, TargetKind


def determine_modules_to_diff(graph: PackageGraph,
                              products: Iterable[str],
                              targets: Iterable[str],
                              scope: ObservabilityScope) -> Set[str]:
    """Compute the set of module names to diff.

    Without filters every Swift module of every library product is
    selected. With filters, each product and target name is validated and
    every invalid one is reported before giving up, so the user sees all of
    them in one run.

    Args:
        graph: Package graph of the current package
        products: Product names from ``--products``
        targets: Target names from ``--targets``
        scope: Where configuration errors are emitted

    Returns:
        Set of module (c99) names; empty only when the package has no
        Swift library module and no filter was given

    Raises:
        SelectionError: If any filter is invalid or the filters select nothing
    """
    products = list(products)
    targets = list(targets)

    if not products and not targets:
        modules = set(graph.api_digester_modules)
        if not modules:
            scope.emit_warning("package does not contain any Swift library module, nothing to compare")
        return modules

    modules: Set[str] = set()
    invalid = 0

    for product_name in products:
        product = graph.find_product(product_name)
        if product is None:
            scope.emit_error(f"no such product '{product_name}'")
            invalid += 1
            continue
        if not product.kind.is_library:
            scope.emit_error(f"'{product_name}' is not a library product")
            invalid += 1
            continue
        modules.update(
            target.c99name for target in product.targets
            if target.language is Language.SWIFT
        )

    for target_name in targets:
        target = graph.find_target(target_name)
        if target is None:
            scope.emit_error(f"no such target '{target_name}'")
            invalid += 1
            continue
        if target.kind is not TargetKind.LIBRARY:
            scope.emit_error(f"'{target_name}' is not a library target")
            invalid += 1
            continue
        if target.language is not Language.SWIFT:
            scope.emit_error(f"'{target_name}' is not a Swift language target")
            invalid += 1
            continue
        modules.add(target.c99name)

    if invalid:
        raise SelectionError(f"{invalid} invalid product/target filter(s)")
    if not modules:
        scope.emit_error("the selected products and targets contain no Swift module to diff")
        raise SelectionError("no modules to diff")
    return modules
