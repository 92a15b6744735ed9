"""Row Validator: applies an ImportSchema to one tokenized row.

Pure function over the row's strings: every problem in a row is reported in
one pass, and a row is accepted only when it has no errors at all.
"""
from app.rules.import_schemas import ImportSchema
from app.schemas.imports import AcceptedRow, FieldError, RejectedRow, ValidatedRow
from app.services.csv_tokenizer import RawRow


def map_header(schema: ImportSchema, header: list[str]) -> dict[str, int]:
    """Map canonical column name → position in the file's header."""
    positions: dict[str, int] = {}
    for idx, name in enumerate(header):
        col = schema.column(name)
        if col is not None:
            positions[col.name] = idx
    return positions


def unknown_columns(schema: ImportSchema, header: list[str]) -> list[str]:
    return [name for name in header if schema.column(name) is None]


def validate_row(
    schema: ImportSchema,
    header: list[str],
    raw_row: RawRow,
    positions: dict[str, int] | None = None,
) -> ValidatedRow:
    """Validate *raw_row* against *schema* using *header* to locate columns.

    ``positions`` may be passed in by callers validating many rows against
    the same header to skip recomputing the mapping.
    """
    if raw_row.error:
        return RejectedRow(
            row=raw_row.index,
            line=raw_row.line,
            errors=[FieldError(column=None, message=raw_row.error)],
        )

    if positions is None:
        positions = map_header(schema, header)

    record: dict[str, str] = {}
    errors: list[FieldError] = []
    failed: set[str] = set()

    for col in schema.columns:
        idx = positions.get(col.name)
        value = raw_row.fields[idx].strip() if idx is not None else ""

        if not value:
            if col.required:
                errors.append(FieldError(column=col.name, message=f"{col.name} is required"))
                failed.add(col.name)
            else:
                record[col.name] = col.default or ""
            continue

        try:
            record[col.name] = col.validate(value)
        except ValueError as exc:
            errors.append(FieldError(column=col.name, message=str(exc)))
            failed.add(col.name)

    for columns, check in schema.row_checks:
        if failed.intersection(columns):
            continue
        errors.extend(check(record))

    if errors:
        return RejectedRow(row=raw_row.index, line=raw_row.line, errors=errors)
    return AcceptedRow(row=raw_row.index, record=record)
