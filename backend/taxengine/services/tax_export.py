"""Tax report export renderers (CSV and PDF).

Exports are derived views of a TaxComputationResult. They never compute
figures of their own beyond totals and formatting.
"""

import csv
import io
import logging
from typing import List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models import TaxComputationResult

logger = logging.getLogger(__name__)

REPORT_TITLE = "Venue Tax Report"
DISCLAIMER = "Figures are computed from the supplied ledger and are illustrative only."
DEFAULT_JURISDICTION = "Unspecified"

# PDF section truncation limits
PDF_MAX_REALIZED = 8
PDF_MAX_INCOME = 8
PDF_MAX_HOLDINGS = 10

REALIZED_COLUMNS = ["timestamp", "venue", "asset", "quantity", "proceeds", "cost_basis", "gain_loss"]
INCOME_COLUMNS = ["timestamp", "venue", "type", "asset", "amount", "value_in_base"]
LOT_COLUMNS = [
    "acquired_at", "venue", "asset", "original_quantity",
    "remaining_quantity", "acquisition_value",
]


def _money(value: float) -> str:
    return f"{value:.2f}"


def _quantity(value: float) -> str:
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def build_tax_csv(result: TaxComputationResult) -> str:
    """Render a result as one CSV document.

    Layout: header line, summary line, then Realized Gains, Income Events
    and Open Lots tables in that order, each after a blank line and a title.
    Lots that are fully consumed stay listed with remaining_quantity 0.
    """
    base = result.metadata.base_currency
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow([REPORT_TITLE, "Generated At", result.metadata.generated_at.isoformat()])
    writer.writerow([
        "Summary",
        f"Realized Gains ({base})", _money(result.realized_total),
        f"Income ({base})", _money(result.income_total),
    ])

    writer.writerow([])
    writer.writerow(["Realized Gains"])
    writer.writerow(REALIZED_COLUMNS)
    for gain in result.realized_gains:
        writer.writerow([
            gain.timestamp.isoformat(),
            gain.venue,
            gain.asset,
            _quantity(gain.quantity),
            _money(gain.proceeds),
            _money(gain.cost_basis),
            _money(gain.gain_loss),
        ])

    writer.writerow([])
    writer.writerow(["Income Events"])
    writer.writerow(INCOME_COLUMNS)
    for item in result.income:
        writer.writerow([
            item.timestamp.isoformat(),
            item.venue,
            item.type.value,
            item.asset,
            _quantity(item.amount),
            _money(item.value_in_base),
        ])

    writer.writerow([])
    writer.writerow(["Open Lots"])
    writer.writerow(LOT_COLUMNS)
    for lot in result.lots:
        writer.writerow([
            lot.acquisition_timestamp.isoformat(),
            lot.venue,
            lot.asset,
            _quantity(lot.quantity),
            _quantity(lot.remaining_quantity),
            _money(lot.acquisition_value),
        ])

    logger.debug(
        f"Rendered CSV: {len(result.realized_gains)} gains, "
        f"{len(result.income)} income events, {len(result.lots)} lots"
    )

    return output.getvalue()


def pdf_sections(
    result: TaxComputationResult,
    jurisdiction: Optional[str] = None,
) -> List[Tuple[str, List[str]]]:
    """Ordered PDF content as (heading, lines) pairs.

    The first section is the title with the disclaimer banner as its line.
    """
    base = result.metadata.base_currency

    details = [
        f"Generated At: {result.metadata.generated_at.isoformat()}",
        f"Cost Basis: {result.metadata.cost_basis}",
        f"Base Currency: {base}",
        f"Jurisdiction: {jurisdiction or DEFAULT_JURISDICTION}",
        f"Transactions Evaluated: {result.transactions_evaluated}",
    ]

    summary = [
        f"Realized Gains ({base}): {_money(result.realized_total)}",
        f"Income ({base}): {_money(result.income_total)}",
    ]

    realized = [
        f"{gain.timestamp:%Y-%m-%d %H:%M}: {gain.asset} @ {gain.venue} - "
        f"{_money(gain.gain_loss)} {base}"
        for gain in result.realized_gains[:PDF_MAX_REALIZED]
    ]

    income = [
        f"{item.type.value.replace('_', ' ').upper()} | {item.asset} | {item.venue} | "
        f"{_money(item.value_in_base)} {base}"
        for item in result.income[:PDF_MAX_INCOME]
    ]

    holdings = [
        f"{holding.venue} | {holding.asset} | {holding.quantity:.6f} = "
        f"{_money(holding.value_in_base)} {base}"
        for holding in result.holdings[:PDF_MAX_HOLDINGS]
    ]

    return [
        (REPORT_TITLE, [DISCLAIMER]),
        ("Report Details", details),
        ("Summary", summary),
        ("Top Realized Gains", realized),
        ("Income Events", income),
        ("Holdings Snapshot", holdings),
    ]


def build_tax_pdf(
    result: TaxComputationResult,
    jurisdiction: Optional[str] = None,
) -> bytes:
    """Render a result as an A4 PDF document.

    Returns:
        PDF file content
    """
    buffer = io.BytesIO()
    canv = canvas.Canvas(buffer, pagesize=A4)
    canv.setTitle(REPORT_TITLE)

    width, height = A4
    margin = 50
    y = height - margin

    def line(text: str, font: str = "Helvetica", size: int = 11, gap: float = 15) -> None:
        nonlocal y
        if y < margin:
            canv.showPage()
            y = height - margin
        canv.setFont(font, size)
        canv.drawString(margin, y, text)
        y -= gap

    sections = pdf_sections(result, jurisdiction)

    title, banner = sections[0]
    line(title, font="Helvetica-Bold", size=20, gap=26)
    canv.setFillColorRGB(0.85, 0.47, 0.02)
    for text in banner:
        line(text)
    canv.setFillColorRGB(0, 0, 0)
    y -= 10

    for heading, lines in sections[1:]:
        line(heading, font="Helvetica-Bold", size=12, gap=17)
        for text in lines or ["No entries"]:
            line(text)
        y -= 10

    canv.showPage()
    canv.save()

    logger.debug(f"Rendered PDF report ({len(buffer.getvalue())} bytes)")

    return buffer.getvalue()
