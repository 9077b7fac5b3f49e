"""Flattening and ordering of BOM items for the inventory screens"""

LOCATION_SORT_COLUMNS = (
    'location', 'job_number', 'job_name', 'project_manager', 'primary_field_leader',
    'description', 'on_hand_quantity', 'last_updated',
)


def item_row(item):
    """One BomItem with its BOM's job fields"""
    bom = item.bom
    return {
        'id': item.pk,
        'bom_id': bom.pk,
        'bom_type': bom.type,
        'job_number': bom.job_number,
        'job_name': bom.job_name,
        'project_manager': bom.project_manager,
        'primary_field_leader': bom.primary_field_leader,
        'work_category': bom.work_category_id,
        'description': item.description,
        'order_bom_quantity': item.order_bom_quantity,
        'design_bom_quantity': item.design_bom_quantity,
        'on_hand_quantity': item.on_hand_quantity,
        'shipped_quantity': item.shipped_quantity,
        'shelf_locations': list(item.shelf_locations or []),
        'last_updated': item.last_updated,
    }


def location_rows(rows):
    """One row per (shelf location, item) pair"""
    return [
        {'location': location, **row}
        for row in rows
        for location in row['shelf_locations']
    ]


def _sort_value(value):
    if value is None:
        return (0, '')
    if isinstance(value, str):
        return (1, value.casefold())
    return (1, value)


def sort_location_rows(rows, column='location', direction='asc'):
    """
    Order location rows by ``column``; ties fall back to location then job number.

    The direction applies to the whole key, tie-breakers included.
    """
    if column not in LOCATION_SORT_COLUMNS:
        raise ValueError(f"Cannot sort by '{column}'")
    return sorted(
        rows,
        key=lambda row: (_sort_value(row[column]), _sort_value(row['location']), _sort_value(row['job_number'])),
        reverse=direction == 'desc',
    )


def matches_search(row, term):
    """Case-insensitive substring match over the text columns of a row"""
    term = (term or '').strip().casefold()
    if not term:
        return True
    values = [
        row['job_number'], row['job_name'], row['project_manager'],
        row['primary_field_leader'], row['description'],
    ]
    # A location row matches on its own shelf, an item row on any of its shelves
    if 'location' in row:
        values.append(row['location'])
    else:
        values.extend(row['shelf_locations'])
    return any(term in (value or '').casefold() for value in values)
