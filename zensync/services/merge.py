"""
Merging of ZenMoney diffs into a local snapshot.

Every diff carries complete entity records, so merging is keyed replacement:
the incoming record wins over the stored one with the same key. Deletions are
applied after the upserts of the same diff.
"""
import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Set, TypeVar

from zensync.schemas import Budget, Deletion, DiffResponse, EntityCollections, EntityType, Snapshot

logger = logging.getLogger(__name__)

E = TypeVar("E")


def entity_key(entity) -> str:
    # ids are int for instrument/company/user and str elsewhere
    return str(entity.id)


def budget_key(budget: Budget) -> str:
    return f"{budget.tag or ''}:{budget.date}"


def merge_entities(
    existing: List[E],
    incoming: List[E],
    key: Callable[[E], str] = entity_key,
) -> List[E]:
    """
    Merge two collections of the same entity type.

    Args:
        existing: Stored collection
        incoming: Collection from the diff
        key: Identity function

    Returns:
        One entity per key, incoming records replacing stored ones.
        Order is unspecified. When incoming is empty the existing list
        itself is returned.
    """
    if not incoming:
        return existing

    merged: Dict[str, E] = {key(entity): entity for entity in existing}
    for entity in incoming:
        merged[key(entity)] = entity
    return list(merged.values())


def merge_budgets(existing: List[Budget], incoming: List[Budget]) -> List[Budget]:
    return merge_entities(existing, incoming, key=budget_key)


def group_deletions(deletions: Iterable[Deletion]) -> Dict[str, Set[str]]:
    """Deleted ids (as strings) per object tag."""
    grouped: Dict[str, Set[str]] = defaultdict(set)
    for deletion in deletions:
        grouped[deletion.object].add(str(deletion.id))
    return dict(grouped)


def apply_deletions(snapshot: EntityCollections, deletions: Iterable[Deletion]) -> None:
    """
    Remove deleted entities from the snapshot in place.

    Budgets are never deleted this way, unknown object tags are ignored,
    and types the snapshot has no collection for are skipped.
    """
    for tag, ids in group_deletions(deletions).items():
        entity_type = EntityType.from_tag(tag)
        if entity_type is None:
            logger.debug(f"Ignoring {len(ids)} deletion(s) for unknown object type '{tag}'")
            continue
        if entity_type is EntityType.BUDGET:
            continue

        entities = snapshot.get_collection(entity_type)
        if entities is None:
            continue

        kept = [entity for entity in entities if entity_key(entity) not in ids]
        removed = len(entities) - len(kept)
        if removed:
            logger.debug(f"Deleted {removed} {tag} record(s)")
        snapshot.set_collection(entity_type, kept)


def merge_snapshot(snapshot: Snapshot, diff: DiffResponse) -> Snapshot:
    """
    Fold a diff into a snapshot and return the result as a new snapshot.

    Entity types absent from the diff (or sent empty) are carried over
    unchanged. The watermark moves to the diff's serverTimestamp and never
    goes backwards.
    """
    result = snapshot.model_copy()

    for entity_type in EntityType:
        incoming: Optional[list] = diff.get_collection(entity_type)
        if not incoming:
            continue

        existing = snapshot.get_collection(entity_type) or []
        if entity_type is EntityType.BUDGET:
            merged = merge_budgets(existing, incoming)
        else:
            merged = merge_entities(existing, incoming)
        result.set_collection(entity_type, merged)
        logger.debug(f"Merged {len(incoming)} {entity_type.value} record(s), {len(merged)} total")

    if diff.deletion:
        apply_deletions(result, diff.deletion)

    if diff.server_timestamp < snapshot.server_timestamp:
        logger.warning(
            f"Diff serverTimestamp {diff.server_timestamp} is older than snapshot "
            f"{snapshot.server_timestamp}; keeping the newer watermark"
        )
    else:
        result.server_timestamp = diff.server_timestamp

    return result
