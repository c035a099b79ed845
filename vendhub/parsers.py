import logging
import re
import pandas as pd

from . import settings
from .errors import (
    InvalidAmount,
    InvalidDate,
    MalformedInput,
    MissingField,
    ValidationError,
)
from .schemas import CanonicalTransaction

logger = logging.getLogger(__name__)

# --- Vendor Format Registry ---
# One entry per data source. "fields" maps each canonical field to the vendor column
# that feeds it. To accept a new vendor export, add an entry here.
VENDOR_FORMATS = {
    "vendor_a": {
        "columns": settings.VENDOR_A_COLUMNS,
        "fields": {
            "location_code": "Location_ID",
            "product_name": "Product_Name",
            "product_identifier": "Scancode",
            "sale_date": "Trans_Date",
            "unit_price": "Price",
            "total_amount": "Total_Amount",
        },
    },
    "vendor_b": {
        "columns": settings.VENDOR_B_COLUMNS,
        "fields": {
            "location_code": "Site_Code",
            "product_name": "Item_Description",
            "product_identifier": "UPC",
            "sale_date": "Sale_Date",
            "unit_price": "Unit_Price",
            "total_amount": "Final_Total",
        },
    },
}

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LINE_BREAK = re.compile(r"\r?\n")


def get_vendor_format(data_source: str) -> dict:
    try:
        return VENDOR_FORMATS[data_source]
    except KeyError:
        allowed = " or ".join(f"'{name}'" for name in VENDOR_FORMATS)
        raise ValidationError(f"Invalid data source. Must be {allowed}") from None


# --- Field Parser ---


def parse_csv_line(line: str) -> list[str]:
    """
    Splits one CSV line on unquoted commas and trims every field.
    Inside quotes a doubled quote is a literal quote. Malformed quoting never raises:
    an unmatched quote just keeps quote mode open until the end of the line.
    """
    fields = []
    current = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def parse_csv_text(text: str) -> pd.DataFrame:
    """
    Turns raw upload text into a DataFrame of strings, one record per data row.
    The first non-blank line is the header. Short rows are padded with "" and
    long rows are cut to the header length.
    """
    if text is not None:
        # Excel exports often start with a UTF-8 byte order mark
        text = text.lstrip("\ufeff")
    if text is None or not text.strip():
        raise MalformedInput("CSV file is empty")

    lines = [line for line in _LINE_BREAK.split(text.strip()) if line.strip()]
    if len(lines) < 2:
        raise MalformedInput(
            "CSV file must contain at least a header row and one data row"
        )

    headers = parse_csv_line(lines[0])
    width = len(headers)
    rows = []

    for row_number, line in enumerate(lines[1:], start=1):
        values = parse_csv_line(line.strip())
        if len(values) > width:
            logger.warning(
                f"  > ⚠️  Row {row_number}: {len(values)} fields for {width} columns; "
                f"dropping {values[width:]}"
            )
            values = values[:width]
        elif len(values) < width:
            values = values + [""] * (width - len(values))
        rows.append(values)

    return pd.DataFrame(rows, columns=headers, dtype=str)


def validate_headers(headers: list[str], data_source: str):
    """Raises MalformedInput when the header row lacks a column the format needs."""
    expected = get_vendor_format(data_source)["columns"]
    present = [str(h).strip() for h in headers]
    missing = [column for column in expected if column not in present]

    if missing:
        raise MalformedInput(
            f"Missing required CSV headers: {', '.join(missing)}. "
            f"Found headers: {', '.join(present)}"
        )

    extra = [h for h in present if h not in expected]
    if extra:
        logger.info(f"Extra headers found (will be ignored): {', '.join(extra)}")


# --- Row Normalizer ---


def normalize_location_code(location_code: str) -> str:
    """Drops the legacy "2.0_" prefix so both spellings map to one site."""
    code = location_code.strip()
    if code.startswith(settings.LEGACY_LOCATION_PREFIX):
        code = code[len(settings.LEGACY_LOCATION_PREFIX):]
    return code.strip()


def parse_price(value: str) -> float:
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        price = float(cleaned)
    except ValueError:
        raise InvalidAmount(value) from None

    # NaN never compares >= 0
    if not price >= 0:
        raise InvalidAmount(value)
    return price


def parse_date(value: str) -> str:
    """MM/DD/YYYY becomes YYYY-MM-DD; dashed values are assumed to be ISO already."""
    value = value.strip()
    if "/" in value:
        parts = value.split("/")
        if len(parts) != 3:
            raise InvalidDate(value)
        month, day, year = (part.strip() for part in parts)
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    if "-" in value:
        return value
    raise InvalidDate(value)


def normalize_row(row: dict, data_source: str) -> CanonicalTransaction:
    """Maps one vendor row onto the canonical transaction model."""
    vendor_format = get_vendor_format(data_source)

    missing = [
        column
        for column in vendor_format["columns"]
        if not str(row.get(column) or "").strip()
    ]
    if missing:
        raise MissingField(missing)

    def value(field: str) -> str:
        return str(row[vendor_format["fields"][field]]).strip()

    return CanonicalTransaction(
        location_code=normalize_location_code(value("location_code")),
        product_name=value("product_name"),
        product_identifier=value("product_identifier"),
        sale_date=parse_date(value("sale_date")),
        unit_price=parse_price(value("unit_price")),
        total_amount=parse_price(value("total_amount")),
        raw_row={str(k): "" if v is None else str(v) for k, v in row.items()},
    )
