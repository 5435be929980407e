"""Analytics helpers for inspecting adventure structure."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path

from .models import Adventure, ChoicePassage, EffectType, EndingType


@dataclass(frozen=True)
class PassageReachabilityReport:
    """Summary of which passages can be visited from a starting passage."""

    start_passage: int
    reachable_passages: tuple[int, ...]
    unreachable_passages: tuple[int, ...]
    reachable_endings: tuple[int, ...]

    @property
    def reachable_count(self) -> int:
        """Return the number of reachable passages including the start."""

        return len(self.reachable_passages)

    @property
    def unreachable_count(self) -> int:
        return len(self.unreachable_passages)

    @property
    def total_passage_count(self) -> int:
        return self.reachable_count + self.unreachable_count

    @property
    def fully_reachable(self) -> bool:
        """Return ``True`` if every passage can be visited."""

        return self.unreachable_count == 0

    @property
    def has_reachable_ending(self) -> bool:
        """Return ``True`` when at least one ending can be reached."""

        return bool(self.reachable_endings)


@dataclass(frozen=True)
class ItemEffectLocation:
    """Passage in which an item is added or removed."""

    passage: int
    effect_index: int


@dataclass(frozen=True)
class ItemFlowDetails:
    """Summary of how a specific item flows through an adventure."""

    item: str
    name: str | None
    sources: tuple[ItemEffectLocation, ...]
    removals: tuple[ItemEffectLocation, ...]

    @property
    def is_declared(self) -> bool:
        return self.name is not None

    @property
    def is_never_awarded(self) -> bool:
        """Return ``True`` when no passage ever adds the item."""

        return not self.sources

    @property
    def is_removed_without_source(self) -> bool:
        """Return ``True`` when the item is removed but never awarded."""

        return bool(self.removals) and not self.sources


@dataclass(frozen=True)
class ItemFlowReport:
    """Aggregate summary describing how items circulate throughout an adventure."""

    items: tuple[ItemFlowDetails, ...]

    @property
    def never_awarded_items(self) -> tuple[str, ...]:
        """Return declared item ids that no passage adds."""

        return tuple(detail.item for detail in self.items if detail.is_never_awarded)

    @property
    def items_removed_without_source(self) -> tuple[str, ...]:
        return tuple(
            detail.item for detail in self.items if detail.is_removed_without_source
        )


@dataclass(frozen=True)
class EndingSummary:
    """Counts of ending passages per ending type."""

    total: int
    by_type: tuple[tuple[str, int], ...]


def compute_passage_reachability(
    adventure: Adventure,
    *,
    start: int = 1,
) -> PassageReachabilityReport:
    """Determine which passages are reachable from ``start``.

    The analysis walks the directed graph formed by choice targets. Effects
    never gate a choice, so this is exact rather than an approximation.
    """

    passages = adventure.passages
    if start not in passages:
        raise ValueError(f"Start passage {start} is not defined.")

    visited: set[int] = set()
    frontier = [start]

    while frontier:
        current = frontier.pop()
        if current in visited:
            continue

        visited.add(current)
        passage = passages[current]
        if not isinstance(passage, ChoicePassage):
            continue
        for choice in passage.choices:
            target = choice.goto
            if target in visited:
                continue
            if target in passages:
                frontier.append(target)

    reachable = tuple(sorted(visited))
    unreachable = tuple(sorted(passage_id for passage_id in passages if passage_id not in visited))
    endings = tuple(
        passage_id for passage_id in reachable if passages[passage_id].ending
    )

    return PassageReachabilityReport(
        start_passage=start,
        reachable_passages=reachable,
        unreachable_passages=unreachable,
        reachable_endings=endings,
    )


def analyse_item_flow(adventure: Adventure) -> ItemFlowReport:
    """Analyse where each declared item is awarded and removed."""

    sources_by_item: defaultdict[str, list[ItemEffectLocation]] = defaultdict(list)
    removals_by_item: defaultdict[str, list[ItemEffectLocation]] = defaultdict(list)

    for passage_id, passage in adventure.passages.items():
        if not isinstance(passage, ChoicePassage):
            continue
        for index, effect in enumerate(passage.effects):
            location = ItemEffectLocation(passage=passage_id, effect_index=index)
            if effect.type is EffectType.ADD_ITEM:
                sources_by_item[effect.item].append(location)
            else:
                removals_by_item[effect.item].append(location)

    names = {item.id: item.name for item in adventure.items}
    all_items = [item.id for item in adventure.items]
    all_items.extend(
        sorted(
            {*sources_by_item.keys(), *removals_by_item.keys()} - set(names)
        )
    )

    def _sorted_locations(
        events: list[ItemEffectLocation],
    ) -> tuple[ItemEffectLocation, ...]:
        return tuple(
            sorted(events, key=lambda event: (event.passage, event.effect_index))
        )

    details = [
        ItemFlowDetails(
            item=item,
            name=names.get(item),
            sources=_sorted_locations(sources_by_item.get(item, [])),
            removals=_sorted_locations(removals_by_item.get(item, [])),
        )
        for item in all_items
    ]

    return ItemFlowReport(items=tuple(details))


def summarise_endings(adventure: Adventure) -> EndingSummary:
    """Count ending passages, grouping untyped endings under ``"untyped"``."""

    counts = {ending_type.value: 0 for ending_type in EndingType}
    counts["untyped"] = 0
    total = 0
    for passage in adventure.passages.values():
        if not passage.ending:
            continue
        total += 1
        key = passage.ending_type.value if passage.ending_type else "untyped"
        counts[key] += 1

    return EndingSummary(total=total, by_type=tuple(counts.items()))


def compute_passage_reachability_from_file(
    path: str | Path,
    *,
    start: int = 1,
) -> PassageReachabilityReport:
    """Parse the adventure at ``path`` and compute reachability statistics."""

    from .parser import parse_adventure_file

    return compute_passage_reachability(parse_adventure_file(path), start=start)


def format_reachability_report(report: PassageReachabilityReport) -> str:
    """Render a reachability report as human readable text."""

    lines = [
        f"Start passage: {report.start_passage}",
        f"Reachable passages: {report.reachable_count}/{report.total_passage_count}",
    ]
    if report.unreachable_passages:
        lines.append(
            "Unreachable passages: "
            + ", ".join(str(passage_id) for passage_id in report.unreachable_passages)
        )
    if report.reachable_endings:
        lines.append(
            "Reachable endings: "
            + ", ".join(str(passage_id) for passage_id in report.reachable_endings)
        )
    else:
        lines.append("Reachable endings: none")
    return "\n".join(lines)


__all__ = [
    "EndingSummary",
    "ItemEffectLocation",
    "ItemFlowDetails",
    "ItemFlowReport",
    "PassageReachabilityReport",
    "analyse_item_flow",
    "compute_passage_reachability",
    "compute_passage_reachability_from_file",
    "format_reachability_report",
    "summarise_endings",
]
