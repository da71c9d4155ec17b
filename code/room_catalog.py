"""Read-only lookup over the room templates available to the generator."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from level_errors import InvalidTemplate
from level_geometry import CellPos, Direction, Rotation
from room_models import ExitTemplate, RoomKind, RoomTemplate


class TemplateCatalog:
    """Immutable set of room templates, indexed by name, kind, and exit direction."""

    def __init__(self, templates: Iterable[RoomTemplate]) -> None:
        self._templates: Tuple[RoomTemplate, ...] = tuple(templates)
        self._by_name: Dict[str, RoomTemplate] = {}
        self._by_kind: Dict[RoomKind, Tuple[RoomTemplate, ...]] = {}
        self._by_exit_direction: Dict[Direction, Tuple[RoomTemplate, ...]] = {}

        for template in self._templates:
            if template.name in self._by_name:
                raise InvalidTemplate(f"Duplicate room template name {template.name!r}")
            self._by_name[template.name] = template

        for kind in RoomKind:
            self._by_kind[kind] = tuple(t for t in self._templates if t.kind is kind)
        for direction in Direction:
            self._by_exit_direction[direction] = tuple(
                t for t in self._templates if direction in t.exit_directions()
            )

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[RoomTemplate]:
        return iter(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def templates(self) -> Tuple[RoomTemplate, ...]:
        return self._templates

    def get(self, name: str) -> RoomTemplate:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise KeyError(f"Unknown room template {name!r}") from exc

    def by_kind(self, kind: RoomKind) -> Tuple[RoomTemplate, ...]:
        return self._by_kind.get(kind, ())

    def with_exit_facing(
        self,
        direction: Direction,
        kinds: Optional[Sequence[RoomKind]] = None,
    ) -> Tuple[RoomTemplate, ...]:
        """Templates with at least one exit facing ``direction``, optionally filtered by kind."""
        templates = self._by_exit_direction.get(direction, ())
        if kinds is None:
            return templates
        return tuple(t for t in templates if t.kind in kinds)

    def required_essentials(self) -> Tuple[RoomTemplate, ...]:
        return tuple(t for t in self._by_kind[RoomKind.ESSENTIAL] if t.is_required_essential)

    def growth_templates(self, kind: RoomKind) -> Tuple[RoomTemplate, ...]:
        """Templates usable for free growth of the given kind.

        Optional (non-required) essential templates grow alongside normal rooms.
        """
        if kind is RoomKind.NORMAL:
            optional_essentials = tuple(
                t for t in self._by_kind[RoomKind.ESSENTIAL] if not t.is_required_essential
            )
            return self._by_kind[RoomKind.NORMAL] + optional_essentials
        return self._by_kind.get(kind, ())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TemplateCatalog:
        """Build a catalog from a JSON-style ``{"templates": [...]}`` description.

        Each template entry holds ``name``, ``kind``, ``footprint`` (list of ``[x, y]``),
        ``exits`` (list of ``{"cell": [x, y], "direction": "north"}``) and optionally
        ``required``, ``fixed_anchor``, ``weight``, ``max_instances`` and ``rotations``
        (list of degrees; each adds a rotated variant).
        """
        entries = data.get("templates")
        if not isinstance(entries, list):
            raise InvalidTemplate("Template catalog mapping requires a 'templates' list")

        templates: List[RoomTemplate] = []
        for entry_index, entry in enumerate(entries):
            try:
                template = RoomTemplate(
                    name=str(entry["name"]),
                    kind=RoomKind.from_value(entry["kind"]),
                    footprint=frozenset(CellPos.from_tuple(cell) for cell in entry["footprint"]),
                    exits=tuple(
                        ExitTemplate(
                            offset=CellPos.from_tuple(exit_entry["cell"]),
                            direction=Direction.from_name(exit_entry["direction"]),
                        )
                        for exit_entry in entry.get("exits", ())
                    ),
                    required=entry.get("required"),
                    fixed_anchor=(
                        CellPos.from_tuple(entry["fixed_anchor"])
                        if entry.get("fixed_anchor") is not None
                        else None
                    ),
                    weight=float(entry.get("weight", 1.0)),
                    max_instances=entry.get("max_instances"),
                )
            except (KeyError, TypeError) as exc:
                raise InvalidTemplate(f"Template entry {entry_index} is malformed: {exc}") from exc
            templates.append(template)
            for degrees in entry.get("rotations", ()):
                rotation = Rotation.from_degrees(int(degrees))
                if rotation is Rotation.DEG_0:
                    continue
                templates.append(template.rotated(rotation))
        return cls(templates)
