"""Dependency ordering for onchain-deployments library."""

from typing import Dict, Iterable, List, Optional, Sequence, Set

from .exceptions import ConfigurationError, DependencyCycleError, MissingDependencyError
from .types import ArgumentKind, Unit


def index_units(units: Sequence[Unit]) -> Dict[str, Unit]:
    """
    Map unit names to units, preserving declaration order.

    Raises:
        ConfigurationError: If two units share a name
    """
    index: Dict[str, Unit] = {}
    for unit in units:
        if unit.name in index:
            raise ConfigurationError(f"Unit '{unit.name}' is defined more than once")
        index[unit.name] = unit
    return index


def schedule(units: Sequence[Unit], external: Iterable[str] = ()) -> List[Unit]:
    """
    Order units so every unit comes after its dependencies.

    Each pass selects, in declaration order, the units whose dependencies all
    completed in earlier passes. Ties are therefore broken by declaration
    order and repeated runs produce the same order.

    Args:
        units: Units in declaration order
        external: Names satisfied outside this run (e.g. units disabled on
            the target network); dependencies on them are ignored

    Returns:
        Units in execution order

    Raises:
        MissingDependencyError: If a dependency names an undefined unit
        DependencyCycleError: If the dependencies form a cycle
    """
    index = index_units(units)
    satisfied: Set[str] = set(external)
    done: Set[str] = set()
    remaining = list(index.values())
    order: List[Unit] = []

    while remaining:
        ready = [
            unit for unit in remaining
            if all(dep in done or dep in satisfied for dep in unit.dependencies)
        ]
        if not ready:
            break

        order.extend(ready)
        done.update(unit.name for unit in ready)
        remaining = [unit for unit in remaining if unit.name not in done]

    if remaining:
        for unit in remaining:
            missing = {
                dep for dep in unit.dependencies
                if dep not in index and dep not in satisfied
            }
            if missing:
                raise MissingDependencyError(unit.name, missing)
        raise DependencyCycleError(unit.name for unit in remaining)

    return order


def select_units(units: Sequence[Unit], tags: Optional[Iterable[str]] = None) -> List[Unit]:
    """
    Select units carrying any of the tags, plus their transitive dependencies.

    Args:
        units: Units in declaration order
        tags: Tags to select; None or empty selects every unit

    Returns:
        Selected units in declaration order

    Raises:
        ConfigurationError: If no unit carries any of the tags
        MissingDependencyError: If a selected unit depends on an undefined unit
    """
    tags = set(tags or ())
    if not tags:
        return list(units)

    index = index_units(units)
    selected: Set[str] = set()
    stack = [unit.name for unit in units if tags.intersection(unit.tags)]
    if not stack:
        raise ConfigurationError(f"No units tagged {', '.join(sorted(tags))}")

    while stack:
        name = stack.pop()
        if name in selected:
            continue
        selected.add(name)
        for dep in index[name].dependencies:
            if dep not in index:
                raise MissingDependencyError(name, [dep])
            stack.append(dep)

    return [unit for unit in units if unit.name in selected]


def validate_references(units: Sequence[Unit], defined: Iterable[str]) -> None:
    """
    Check that argument refs, wiring targets and patch sources name defined units.

    Args:
        units: Units to check
        defined: Every unit name in the plan

    Raises:
        MissingDependencyError: On the first unit with an undefined reference
    """
    defined = set(defined)
    for unit in units:
        referenced = {
            arg.value for arg in unit.args if arg.kind is ArgumentKind.REF
        }
        for call in unit.wiring:
            referenced.add(call.target)
            referenced.update(
                arg.value for arg in call.args if arg.kind is ArgumentKind.REF
            )
        referenced.update(patch.source for patch in unit.patches)

        missing = referenced - defined
        if missing:
            raise MissingDependencyError(unit.name, missing)
