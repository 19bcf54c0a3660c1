"""Reanchoring: rewriting relative locations across chain boundaries.

A Location is relative to the chain that reads it. When a value computed on
one chain is embedded in a program another chain executes, it has to be
rewritten for the new reader. Example, with the context
``[GlobalConsensus(Polkadot), Parachain(4001)]``:

    (1, Parachain(1000)/PalletInstance(50)/GeneralIndex(1984))
        reanchored to (1, Parachain(1000))  ->  (0, PalletInstance(50)/GeneralIndex(1984))

The algorithm has three steps:
1. Invert the target through our context to learn how the target addresses us.
2. Prepend that inverted path to the location being reanchored.
3. Drop parents that the target's own interior makes redundant.
"""

from __future__ import annotations

from collections.abc import Sequence

from xcm_composer.program.errors import ReanchorError
from xcm_composer.program.ir import (
    MAX_JUNCTIONS,
    Asset,
    GlobalConsensus,
    Junction,
    Location,
    NetworkId,
    Parachain,
)

# Interior location of a chain within the global consensus universe
InteriorLocation = tuple[Junction, ...]


def global_context(chain_id: int, network: NetworkId = NetworkId.POLKADOT) -> InteriorLocation:
    """Universal location of a parachain, used as the ``context`` argument."""
    return (GlobalConsensus(network=network), Parachain(id=chain_id))


def invert_target(context: Sequence[Junction], target: Location) -> Location:
    """Return the location of ``context``'s chain as seen from ``target``.

    Raises:
        ReanchorError: If ``target`` ascends beyond what ``context`` knows
    """
    if target.parents > len(context):
        raise ReanchorError(
            f"Target {target} ascends {target.parents} levels but the context only "
            f"has {len(context)}: cannot address it from there"
        )
    # Each parent of the target consumes one junction from the end of our context
    consumed = tuple(context[len(context) - target.parents :])
    return Location(parents=len(target.interior), interior=consumed)


def prepend_with(location: Location, prefix: Location) -> Location:
    """Return ``location`` re-expressed as a path continuing from ``prefix``.

    Raises:
        ReanchorError: If the result would exceed the junction or parent limits
    """
    prefix_interior = list(prefix.interior)
    parents = location.parents

    # Each of our parents cancels the last junction of the prefix
    while parents > 0 and prefix_interior:
        prefix_interior.pop()
        parents -= 1

    final_parents = prefix.parents + parents
    final_interior = tuple(prefix_interior) + location.interior
    if final_parents > 255:
        raise ReanchorError(f"Prepending {prefix} to {location} exceeds 255 parents")
    if len(final_interior) > MAX_JUNCTIONS:
        raise ReanchorError(
            f"Prepending {prefix} to {location} exceeds {MAX_JUNCTIONS} junctions"
        )
    return Location(parents=final_parents, interior=final_interior)


def simplify(location: Location, context: Sequence[Junction]) -> Location:
    """Remove parents that ascend only to descend back into ``context``."""
    if len(context) < location.parents:
        return location

    parents = location.parents
    interior = list(location.interior)
    while parents > 0 and interior:
        if interior[0] != context[len(context) - parents]:
            break
        interior.pop(0)
        parents -= 1
    return Location(parents=parents, interior=tuple(interior))


def reanchored(location: Location, target: Location, context: Sequence[Junction]) -> Location:
    """Rewrite ``location`` (valid within ``context``) so it is valid from ``target``.

    Args:
        location: Location as understood by the chain at ``context``
        target: Where the result will be read, relative to ``context``
        context: Interior location of the chain that produced ``location``

    Returns:
        The same place, addressed from ``target``

    Raises:
        ReanchorError: If the location cannot be expressed from ``target``
    """
    if target.is_here():
        return location
    inverted = invert_target(context, target)
    moved = prepend_with(location, inverted)
    # The target's own interior location, derived from ours
    target_context = tuple(context[: len(context) - target.parents]) + target.interior
    return simplify(moved, target_context)


def reanchored_asset(asset: Asset, target: Location, context: Sequence[Junction]) -> Asset:
    """Reanchor an asset's id. The quantity is unchanged."""
    return asset.model_copy(update={"id": reanchored(asset.id, target, context)})
