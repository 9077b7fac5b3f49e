"""
BOM spreadsheet parsing.

Two CSV layouts are understood.

Row-per-item (canonical), job columns repeated on every row; only the first
data row's job values are used::

    Job Number,Job Name,Project Manager,Primary Field Leader,Description,Quantity
    J1,Tower,Pat Doe,Lee Roe,Conduit 3/4",100
    J1,Tower,Pat Doe,Lee Roe,Box 4x4,20

Sectioned (legacy), a job block and an item block separated by blank rows::

    Job Number,Job Name,Project Manager,Primary Field Leader
    J1,Tower,Pat Doe,Lee Roe

    Part Number,Qty
    Conduit 3/4",100

Header names are compared after lower-casing and dropping everything but
letters and digits, so ``Job Number``, ``jobNumber`` and ``job_number`` are
the same column.
"""
import csv
import io
import logging
import re
from dataclasses import dataclass, field

from django.conf import settings

from backend.inventory.exceptions import ValidationError
from backend.inventory.rules import ItemLine, merge_lines, normalize_description

logger = logging.getLogger('backend.boms')

LAYOUT_ROWS = 'row_per_item'
LAYOUT_SECTIONED = 'sectioned'

JOB_COLUMNS = ('job_number', 'job_name', 'project_manager', 'primary_field_leader')

HEADER_ALIASES = {
    'job_number': ('jobnumber', 'jobno', 'jobnum', 'job', 'jobid'),
    'job_name': ('jobname', 'projectname', 'project'),
    'project_manager': ('projectmanager', 'pm', 'manager'),
    'primary_field_leader': ('primaryfieldleader', 'fieldleader', 'pfl', 'foreman'),
    'description': ('description', 'partnumber', 'partno', 'part', 'partdescription', 'item', 'itemdescription', 'material'),
    'quantity': ('quantity', 'qty', 'count', 'amount'),
}

COLUMN_LABELS = {
    'job_number': 'Job Number',
    'job_name': 'Job Name',
    'project_manager': 'Project Manager',
    'primary_field_leader': 'Primary Field Leader',
    'description': 'Description',
    'quantity': 'Quantity',
}

_ALIAS_LOOKUP = {alias: column for column, aliases in HEADER_ALIASES.items() for alias in aliases}


@dataclass(frozen=True)
class ParsedBom:
    job: dict
    items: tuple
    layout: str = LAYOUT_ROWS
    skipped_rows: int = 0
    warnings: tuple = field(default_factory=tuple)

    def to_dict(self):
        return {
            'job': dict(self.job),
            'items': [{'description': line.description, 'quantity': line.quantity} for line in self.items],
            'layout': self.layout,
            'skipped_rows': self.skipped_rows,
        }


def normalize_header(header):
    return re.sub(r'[^a-z0-9]', '', str(header or '').lower())


def map_headers(header_row):
    """Column name -> index for the recognised cells of ``header_row`` (first match wins)"""
    mapping = {}
    for index, cell in enumerate(header_row):
        column = _ALIAS_LOOKUP.get(normalize_header(cell))
        if column and column not in mapping:
            mapping[column] = index
    return mapping


def parse_quantity(value):
    """Positive whole number in ``value``, or None"""
    text = str(value or '').strip().replace(',', '')
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not number.is_integer() or number <= 0:
        return None
    return int(number)


def read_csv_upload(uploaded_file, max_bytes=None):
    """Decode an uploaded CSV into a list of rows of stripped cells"""
    name = getattr(uploaded_file, 'name', '') or ''
    if name.lower().endswith(('.xlsx', '.xls')):
        raise ValidationError(
            'Excel workbooks are not read directly. In Excel use File > Save As > '
            '"CSV UTF-8 (Comma delimited)" and upload the .csv file.'
        )
    if not name.lower().endswith('.csv'):
        raise ValidationError('Only .csv files can be imported. Save the spreadsheet as CSV and try again.')

    max_bytes = max_bytes or getattr(settings, 'INVENTORY_MAX_UPLOAD_BYTES', 5 * 1024 * 1024)
    size = getattr(uploaded_file, 'size', None)
    if size is not None and size > max_bytes:
        raise ValidationError(f"File is too large ({size} bytes); the limit is {max_bytes} bytes.")

    raw = uploaded_file.read()
    if isinstance(raw, bytes):
        try:
            text = raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            logger.warning(f"Upload {name} is not valid UTF-8")
            raise ValidationError('The file could not be read. Save it as UTF-8 encoded CSV.')
    else:
        text = raw

    try:
        return [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(text))]
    except csv.Error as e:
        logger.warning(f"Upload {name} is not a parseable CSV: {e}")
        raise ValidationError(f"The file could not be parsed as CSV: {e}")


def _is_blank(row):
    return not any(str(cell or '').strip() for cell in row)


def _cell(row, index):
    if index is None or index >= len(row):
        return ''
    return str(row[index] or '').strip()


def _missing_error(missing):
    labels = ', '.join(COLUMN_LABELS[column] for column in missing)
    return ValidationError(f"Missing required column(s): {labels}.")


def _extract_items(rows, header_map):
    lines, skipped = [], 0
    for row in rows:
        if _is_blank(row):
            continue
        description = normalize_description(_cell(row, header_map['description']))
        quantity = parse_quantity(_cell(row, header_map['quantity']))
        if not description or quantity is None:
            skipped += 1
            continue
        lines.append(ItemLine(description, quantity))
    return lines, skipped


def _job_from_row(row, header_map):
    return {column: _cell(row, header_map.get(column)) for column in JOB_COLUMNS}


def parse_bom_rows(rows):
    """
    Turn CSV rows into a ParsedBom.

    Item rows with an empty description or a quantity that is not a positive
    whole number are dropped; rows repeating a description are merged with
    their quantities summed.
    """
    rows = [list(row) for row in rows]
    start = next((index for index, row in enumerate(rows) if not _is_blank(row)), None)
    if start is None:
        raise ValidationError('The file is empty.')

    header_map = map_headers(rows[start])
    if 'description' in header_map or 'quantity' in header_map:
        missing = [column for column in ('job_number', 'description', 'quantity') if column not in header_map]
        if missing:
            raise _missing_error(missing)
        data_rows = [row for row in rows[start + 1:] if not _is_blank(row)]
        job = _job_from_row(data_rows[0], header_map) if data_rows else {column: '' for column in JOB_COLUMNS}
        lines, skipped = _extract_items(data_rows, header_map)
        layout = LAYOUT_ROWS
    else:
        job, lines, skipped = _parse_sectioned(rows, start, header_map)
        layout = LAYOUT_SECTIONED

    if not lines:
        raise ValidationError('No valid item rows found. Every item needs a description and a positive whole-number quantity.')
    if not job.get('job_number'):
        raise ValidationError('The job number is empty.')

    merged = merge_lines(lines)
    warnings = []
    if skipped:
        warnings.append(f"{skipped} row(s) skipped for a missing description or invalid quantity.")
    if len(merged) < len(lines):
        warnings.append(f"{len(lines) - len(merged)} duplicate description(s) merged.")
    logger.info(f"Parsed BOM for job {job['job_number']} ({layout}): {len(merged)} item(s), {skipped} row(s) skipped")
    return ParsedBom(job=job, items=tuple(merged), layout=layout, skipped_rows=skipped, warnings=tuple(warnings))


def _parse_sectioned(rows, start, job_header_map):
    missing = [] if 'job_number' in job_header_map else ['job_number']

    value_index = next((index for index in range(start + 1, len(rows)) if not _is_blank(rows[index])), None)
    job_values = rows[value_index] if value_index is not None else []

    item_header_index, item_header_map = None, {}
    if value_index is not None:
        seen_blank = False
        for index in range(value_index + 1, len(rows)):
            if _is_blank(rows[index]):
                seen_blank = True
                continue
            if not seen_blank:
                continue
            candidate = map_headers(rows[index])
            if 'description' in candidate or 'quantity' in candidate:
                item_header_index, item_header_map = index, candidate
                break

    missing += [column for column in ('description', 'quantity') if column not in item_header_map]
    if missing:
        raise _missing_error(missing)

    job = _job_from_row(job_values, job_header_map)
    lines, skipped = _extract_items(rows[item_header_index + 1:], item_header_map)
    return job, lines, skipped
