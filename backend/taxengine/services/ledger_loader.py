"""Ledger document loading and export.

A ledger document is one JSON object:
    {
        "generatedAt": "...",
        "transactions": [...],
        "balances": [...],
        "fxRates": [...],
        "marketPrices": [...]
    }
Keys are camelCase, matching the exported mock tax dataset format.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..models import (
    BalanceSnapshot,
    FxRate,
    LedgerData,
    MarketPrice,
    TradeSide,
    TransactionType,
    VenueTransaction,
)
from .errors import InputValidationError
from .transaction_filter import parse_timestamp

logger = logging.getLogger(__name__)

# Sample ledger shipped with the package
SAMPLE_LEDGER_PATH = Path(__file__).parent.parent.parent / "data" / "sample_ledger.json"


def _require(row: Dict[str, Any], key: str, path: str) -> Any:
    if key not in row or row[key] is None:
        raise InputValidationError(
            kind="missing_field",
            field=f"{path}.{key}",
            message="Required field missing",
        )
    return row[key]


def _number(row: Dict[str, Any], key: str, path: str, default: Optional[float] = None) -> Optional[float]:
    value = row.get(key)
    if value is None:
        if default is None and key in row:
            return None
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError(
            kind="invalid_number",
            field=f"{path}.{key}",
            message=f"Expected number, got {type(value).__name__}",
        )
    return float(value)


def _enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        options = ", ".join(member.value for member in enum_cls)
        raise InputValidationError(
            kind="invalid_option",
            field=field,
            message=f"'{value}' not in allowed options: {options}",
        )


def parse_transaction(row: Dict[str, Any], path: str) -> VenueTransaction:
    """Parse one camelCase transaction row."""
    txn_type = _enum(TransactionType, _require(row, "type", path), f"{path}.type")
    side = row.get("side")

    return VenueTransaction(
        id=str(_require(row, "id", path)),
        venue=str(_require(row, "venue", path)),
        account_id=str(row.get("accountId", "")),
        type=txn_type,
        side=_enum(TradeSide, side, f"{path}.side") if side else None,
        base_asset=str(_require(row, "baseAsset", path)),
        quote_asset=str(_require(row, "quoteAsset", path)),
        quantity=_number(row, "quantity", path, 0.0),
        price=_number(row, "price", path),
        gross_value=_number(row, "grossValue", path, 0.0),
        fee_amount=_number(row, "feeAmount", path, 0.0),
        fee_asset=row.get("feeAsset"),
        net_value=_number(row, "netValue", path, 0.0),
        venue_timestamp=parse_timestamp(
            _require(row, "venueTimestamp", path), f"{path}.venueTimestamp"
        ),
    )


def parse_fx_rate(row: Dict[str, Any], path: str) -> FxRate:
    return FxRate(
        base_currency=str(_require(row, "baseCurrency", path)),
        quote_currency=str(_require(row, "quoteCurrency", path)),
        rate=_number(row, "rate", path, 0.0),
        captured_at=parse_timestamp(_require(row, "capturedAt", path), f"{path}.capturedAt"),
        source=row.get("source"),
    )


def parse_market_price(row: Dict[str, Any], path: str) -> MarketPrice:
    return MarketPrice(
        asset=str(_require(row, "asset", path)),
        quote_currency=str(_require(row, "quoteCurrency", path)),
        price=_number(row, "price", path, 0.0),
        captured_at=parse_timestamp(_require(row, "capturedAt", path), f"{path}.capturedAt"),
        venue=row.get("venue"),
    )


def parse_balance(row: Dict[str, Any], path: str) -> BalanceSnapshot:
    return BalanceSnapshot(
        venue=str(_require(row, "venue", path)),
        account_id=str(row.get("accountId", "")),
        asset=str(_require(row, "asset", path)),
        total=_number(row, "total", path, 0.0),
        value_in_base=_number(row, "valueInBase", path, 0.0),
        captured_at=parse_timestamp(_require(row, "capturedAt", path), f"{path}.capturedAt"),
    )


def _parse_rows(
    document: Dict[str, Any],
    key: str,
    parser: Callable[[Dict[str, Any], str], Any],
) -> List[Any]:
    rows = document.get(key) or []
    if not isinstance(rows, list):
        raise InputValidationError(
            kind="invalid_document",
            field=key,
            message=f"Expected list, got {type(rows).__name__}",
        )
    parsed = []
    for index, row in enumerate(rows):
        path = f"{key}[{index}]"
        if not isinstance(row, dict):
            raise InputValidationError(
                kind="invalid_document",
                field=path,
                message=f"Expected object, got {type(row).__name__}",
            )
        parsed.append(parser(row, path))
    return parsed


def parse_ledger(document: Dict[str, Any]) -> LedgerData:
    """Build LedgerData from a decoded ledger document.

    Raises:
        InputValidationError: Naming the first malformed field
    """
    if not isinstance(document, dict):
        raise InputValidationError(
            kind="invalid_document",
            field="",
            message=f"Ledger must be an object, got {type(document).__name__}",
        )

    generated_at = document.get("generatedAt")

    return LedgerData(
        transactions=_parse_rows(document, "transactions", parse_transaction),
        balances=_parse_rows(document, "balances", parse_balance),
        fx_rates=_parse_rows(document, "fxRates", parse_fx_rate),
        market_prices=_parse_rows(document, "marketPrices", parse_market_price),
        generated_at=parse_timestamp(generated_at, "generatedAt") if generated_at else None,
    )


def load_ledger(path: Union[str, Path, None] = None) -> LedgerData:
    """Load a ledger document from disk (the sample ledger by default).

    Raises:
        FileNotFoundError: If the file does not exist
        InputValidationError: If the document is not valid JSON or malformed
    """
    ledger_path = Path(path) if path else SAMPLE_LEDGER_PATH

    with open(ledger_path, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise InputValidationError(
                kind="invalid_document",
                field="",
                message=f"Invalid JSON in {ledger_path.name}: {e}",
            )

    ledger = parse_ledger(document)
    logger.info(
        f"Loaded ledger from {ledger_path}: {len(ledger.transactions)} transactions, "
        f"{len(ledger.balances)} balances, {len(ledger.fx_rates)} FX rates, "
        f"{len(ledger.market_prices)} market prices"
    )
    return ledger


def ledger_to_document(ledger: LedgerData) -> Dict[str, Any]:
    """Encode LedgerData into the camelCase document shape."""
    generated_at = ledger.generated_at or datetime.now(timezone.utc)
    return {
        "generatedAt": generated_at.isoformat(),
        "transactions": [
            {
                "id": txn.id,
                "venue": txn.venue,
                "accountId": txn.account_id,
                "type": txn.type.value,
                "side": txn.side.value if txn.side else None,
                "baseAsset": txn.base_asset,
                "quoteAsset": txn.quote_asset,
                "quantity": txn.quantity,
                "price": txn.price,
                "grossValue": txn.gross_value,
                "feeAmount": txn.fee_amount,
                "feeAsset": txn.fee_asset,
                "netValue": txn.net_value,
                "venueTimestamp": txn.venue_timestamp.isoformat(),
            }
            for txn in ledger.transactions
        ],
        "balances": [
            {
                "venue": snap.venue,
                "accountId": snap.account_id,
                "asset": snap.asset,
                "total": snap.total,
                "valueInBase": snap.value_in_base,
                "capturedAt": snap.captured_at.isoformat(),
            }
            for snap in ledger.balances
        ],
        "fxRates": [
            {
                "baseCurrency": fx.base_currency,
                "quoteCurrency": fx.quote_currency,
                "rate": fx.rate,
                "capturedAt": fx.captured_at.isoformat(),
                "source": fx.source,
            }
            for fx in ledger.fx_rates
        ],
        "marketPrices": [
            {
                "asset": price.asset,
                "quoteCurrency": price.quote_currency,
                "price": price.price,
                "capturedAt": price.captured_at.isoformat(),
                "venue": price.venue,
            }
            for price in ledger.market_prices
        ],
    }


def dump_ledger(ledger: LedgerData, path: Union[str, Path]) -> Path:
    """Write a ledger document to disk."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(ledger_to_document(ledger), f, indent=2)

    logger.info(f"Exported {len(ledger.transactions)} transactions to {output_path}")
    return output_path
