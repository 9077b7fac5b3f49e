"""
Reconciliation and shelf-assignment rules.

Everything here is a pure function over immutable snapshots: no ORM access, no
clock reads. The workflows in ``services`` load snapshots through the store,
call these rules, and write the results back inside one transaction.

Container contents are matched to BOM items by *match key*: the description
with surrounding whitespace trimmed, internal runs of whitespace collapsed to a
single space, and case folded. ``"Conduit  3/4\""`` and ``"conduit 3/4\""``
refer to the same BOM item; ``"Conduit 3/4"`` (no inch mark) does not.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional

from .exceptions import ValidationError

BOM_TYPE_ORDER = 'order'
BOM_TYPE_DESIGN = 'design'
BOM_TYPES = (BOM_TYPE_ORDER, BOM_TYPE_DESIGN)


def normalize_description(description) -> str:
    """Trim and collapse whitespace, keeping the original casing"""
    return ' '.join(str(description or '').split())


def description_key(description) -> str:
    """Key two descriptions must share to refer to the same BOM item"""
    return normalize_description(description).casefold()


@dataclass(frozen=True)
class ItemLine:
    """One ``{description, quantity}`` line of a container or an import"""
    description: str
    quantity: int


@dataclass(frozen=True)
class ContainerEntry:
    """A container as submitted for receipt, before it exists in the store"""
    container_type: str
    items: tuple
    shelf_location: Optional[str] = None
    notes: str = ''
    image_url: Optional[str] = None


@dataclass(frozen=True)
class BomItemState:
    description: str
    order_bom_quantity: int = 0
    design_bom_quantity: int = 0
    on_hand_quantity: int = 0
    shipped_quantity: int = 0
    shelf_locations: tuple = ()
    last_updated: Optional[datetime] = None

    @property
    def key(self):
        return description_key(self.description)


@dataclass(frozen=True)
class BomSnapshot:
    bom_id: int
    job_number: str
    items: tuple = ()


@dataclass(frozen=True)
class LocationSnapshot:
    name: str
    id: Optional[int] = None


# ---- aggregation ----

def aggregate_quantities(lines: Iterable[ItemLine]) -> dict:
    """Sum quantities per match key; lines without a description are skipped"""
    totals = {}
    for line in lines:
        key = description_key(line.description)
        if not key:
            continue
        totals[key] = totals.get(key, 0) + int(line.quantity)
    return totals


def aggregate_containers(containers) -> dict:
    """Sum quantities across every container of a batch"""
    return aggregate_quantities(line for container in containers for line in container.items)


def shelves_by_description(containers) -> dict:
    """Match key -> shelf names of the containers that carried it, in submission order"""
    shelves = {}
    for container in containers:
        if not container.shelf_location:
            continue
        for line in container.items:
            key = description_key(line.description)
            if not key:
                continue
            names = shelves.setdefault(key, [])
            if container.shelf_location not in names:
                names.append(container.shelf_location)
    return shelves


def unmatched_keys(items, quantities) -> list:
    """Keys of ``quantities`` that no BOM item matches"""
    known = {item.key for item in items}
    return sorted(key for key in quantities if key not in known)


# ---- receipt / shipment ----

def apply_receipt(items, received, now, shelves=None) -> list:
    """
    Credit received quantities to matching BOM items.

    Matching items get ``on_hand += received`` and ``last_updated = now`` and
    pick up the shelves the stock was put on; other items are returned as is.
    """
    shelves = shelves or {}
    updated = []
    for item in items:
        quantity = received.get(item.key)
        if quantity is None:
            updated.append(item)
            continue
        locations = tuple(item.shelf_locations)
        for name in shelves.get(item.key, ()):
            if name not in locations:
                locations = locations + (name,)
        updated.append(replace(
            item,
            on_hand_quantity=item.on_hand_quantity + quantity,
            shelf_locations=locations,
            last_updated=now,
        ))
    return updated


def apply_shipment(items, shipped, now) -> list:
    """
    Move shipped quantities from on-hand to shipped on matching BOM items.

    On-hand is clamped at zero; shipped always grows by the full quantity, so
    an over-shipment cannot be told apart from an exact one afterwards. Use
    ``find_overshipments`` before applying to keep a record of it.
    """
    updated = []
    for item in items:
        quantity = shipped.get(item.key)
        if quantity is None:
            updated.append(item)
            continue
        updated.append(replace(
            item,
            on_hand_quantity=max(0, item.on_hand_quantity - quantity),
            shipped_quantity=item.shipped_quantity + quantity,
            last_updated=now,
        ))
    return updated


def find_overshipments(items, shipped) -> dict:
    """Description -> units shipped beyond what was on hand"""
    excess = {}
    for item in items:
        quantity = shipped.get(item.key)
        if quantity is not None and quantity > item.on_hand_quantity:
            excess[item.description] = quantity - item.on_hand_quantity
    return excess


def validate_quantities(items):
    """Refuse to persist a negative quantity on any BOM item"""
    for item in items:
        for field in ('order_bom_quantity', 'design_bom_quantity', 'on_hand_quantity', 'shipped_quantity'):
            if getattr(item, field) < 0:
                raise ValidationError(f"{field.replace('_', ' ')} for '{item.description}' cannot be negative.")


# ---- BOM construction ----

def _typed_quantities(bom_type, quantity):
    if bom_type not in BOM_TYPES:
        raise ValidationError(f"BOM type must be one of: {', '.join(BOM_TYPES)}.")
    if bom_type == BOM_TYPE_ORDER:
        return {'order_bom_quantity': quantity, 'design_bom_quantity': 0}
    return {'order_bom_quantity': 0, 'design_bom_quantity': quantity}


def merge_lines(lines) -> list:
    """Collapse lines sharing a match key, keeping the first spelling and summing quantities"""
    merged = {}
    for line in lines:
        description = normalize_description(line.description)
        key = description.casefold()
        if not key:
            continue
        if key in merged:
            first = merged[key]
            merged[key] = ItemLine(first.description, first.quantity + int(line.quantity))
        else:
            merged[key] = ItemLine(description, int(line.quantity))
    return list(merged.values())


def build_bom_items(lines, bom_type, now) -> list:
    """Fresh BOM items for an import; the quantity lands on the field of ``bom_type``"""
    _typed_quantities(bom_type, 0)
    items = []
    for line in merge_lines(lines):
        if line.quantity <= 0:
            raise ValidationError(f"Quantity for '{line.description}' must be a positive whole number.")
        items.append(BomItemState(
            description=line.description,
            on_hand_quantity=0,
            shipped_quantity=0,
            shelf_locations=(),
            last_updated=now,
            **_typed_quantities(bom_type, line.quantity),
        ))
    if not items:
        raise ValidationError('A BOM needs at least one item with a description and a positive quantity.')
    return items


def rebuild_bom_items(existing, lines, bom_type, now) -> list:
    """
    Item list after an edit of a BOM of type ``bom_type``.

    Submitted quantities overwrite the typed field; everything else (the other
    typed quantity, on-hand, shipped, shelves) carries over from the existing
    item with the same match key. Items missing from ``lines`` are dropped.
    """
    _typed_quantities(bom_type, 0)
    by_key = {item.key: item for item in existing}
    typed_field = 'order_bom_quantity' if bom_type == BOM_TYPE_ORDER else 'design_bom_quantity'
    items = []
    for line in merge_lines(lines):
        if line.quantity < 0:
            raise ValidationError(f"Quantity for '{line.description}' cannot be negative.")
        previous = by_key.get(description_key(line.description))
        if previous is None:
            previous = BomItemState(description=line.description)
        items.append(replace(
            previous,
            description=line.description,
            last_updated=now,
            **{typed_field: line.quantity},
        ))
    if not items:
        raise ValidationError('A BOM needs at least one item.')
    return items


# ---- shelf assignment ----

def occupied_locations(boms) -> set:
    """Names listed by any BOM item that still has stock on hand"""
    occupied = set()
    for bom in boms:
        for item in bom.items:
            if item.on_hand_quantity > 0:
                occupied.update(item.shelf_locations)
    return occupied


def move_shelves(items, moved_keys, old_shelf, new_shelf, retained_keys=frozenset()) -> list:
    """
    Re-point BOM items after a container moves from ``old_shelf`` to ``new_shelf``.

    Items whose key is in ``moved_keys`` gain ``new_shelf`` and lose
    ``old_shelf``, unless their key is in ``retained_keys`` (stock of the item
    still sits on the old shelf in another container).
    """
    updated = []
    for item in items:
        if item.key not in moved_keys:
            updated.append(item)
            continue
        locations = list(item.shelf_locations)
        if old_shelf and old_shelf in locations and item.key not in retained_keys:
            locations.remove(old_shelf)
        if new_shelf and new_shelf not in locations:
            locations.append(new_shelf)
        updated.append(replace(item, shelf_locations=tuple(locations)))
    return updated


def eligible_shelves(locations, boms, in_flight_selections=(), current_selection=None) -> list:
    """
    Locations that may be offered to one container entry of a form.

    A location is excluded when it is occupied or when another entry of the
    same submission already picked it; the entry's own current selection is
    always kept. Sorted by name.
    """
    occupied = occupied_locations(boms)
    reserved = {name for name in in_flight_selections if name}
    eligible = [
        location for location in locations
        if location.name == current_selection
        or (location.name not in occupied and location.name not in reserved)
    ]
    return sorted(eligible, key=lambda location: location.name)
