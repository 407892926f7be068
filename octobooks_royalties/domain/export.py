"""CSV rendering of sale records for report downloads"""

import csv
import io
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, List
from octobooks_royalties.domain.models import Sale
from octobooks_royalties.utils.date_utils import ensure_utc


class ExportVariant(str, Enum):
    """Column layout, one per dashboard"""

    ADMIN = "admin"
    AUTHOR = "author"
    PUBLISHER = "publisher"


def format_cents(amount_cents: int) -> str:
    """2500 -> '25.00'"""
    return str((Decimal(amount_cents) / 100).quantize(Decimal("0.01")))


_AMOUNT_COLUMNS: Dict[str, Callable[[Sale], str]] = {
    "Quantity": lambda s: str(s.quantity),
    "Sale Amount": lambda s: format_cents(s.sale_amount_cents),
    "Platform Fee": lambda s: format_cents(s.platform_fee_cents),
    "Author Royalty": lambda s: format_cents(s.author_royalty_cents),
    "Publisher Share": lambda s: format_cents(s.publisher_share_cents),
    "Date": lambda s: ensure_utc(s.date).isoformat(),
}

_IDENTITY_COLUMNS: Dict[ExportVariant, Dict[str, Callable[[Sale], str]]] = {
    ExportVariant.ADMIN: {
        "Sale ID": lambda s: s.sale_id,
        "Book ID": lambda s: s.book_id,
        "Order ID": lambda s: s.order_id,
    },
    ExportVariant.AUTHOR: {
        "Sale ID": lambda s: s.sale_id,
        "Book Title": lambda s: s.book_title,
        "Publisher": lambda s: s.publisher_name,
    },
    ExportVariant.PUBLISHER: {
        "Sale ID": lambda s: s.sale_id,
        "Book Title": lambda s: s.book_title,
        "Author": lambda s: s.author_name,
        "Publisher": lambda s: s.publisher_name,
    },
}


def export_headers(variant: ExportVariant) -> List[str]:
    return list(_IDENTITY_COLUMNS[variant]) + list(_AMOUNT_COLUMNS)


def export_sales_csv(sales: Iterable[Sale], variant: ExportVariant = ExportVariant.ADMIN) -> str:
    """
    Render sales as comma-separated text: header row plus one row per sale.

    Fields containing commas, quotes or newlines are quoted, so book titles
    and names cannot break the column layout. Rows are separated by "\\n"
    with no trailing newline.
    """
    columns = {**_IDENTITY_COLUMNS[variant], **_AMOUNT_COLUMNS}

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(columns.keys())
    for sale in sales:
        writer.writerow(render(sale) for render in columns.values())

    return buffer.getvalue().rstrip("\n")
