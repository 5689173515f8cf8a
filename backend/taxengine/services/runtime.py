"""Wiring of engine, scheduler and default options from configuration."""

import logging

from .config import ConfigService
from .currency import FxPolicy
from .ledger_loader import load_ledger
from .lot_matcher import ShortfallPolicy
from .tax_engine import TaxEngine, TaxEngineOptions
from .tax_scheduler import TaxScheduler

logger = logging.getLogger(__name__)


def default_options(config: ConfigService) -> TaxEngineOptions:
    """Run options from the tax section (no date or venue filters)."""
    return TaxEngineOptions(
        cost_basis=config.get("tax.cost_basis", "FIFO"),
        base_currency=config.get("tax.base_currency", "CHF"),
        jurisdiction=config.get("tax.jurisdiction"),
    )


def build_engine(config: ConfigService) -> TaxEngine:
    """Load the configured ledger and build an engine with the configured policies."""
    ledger = load_ledger(config.ledger_path())
    engine = TaxEngine(
        ledger,
        fx_policy=FxPolicy(config.get("tax.fx_policy", "fallback")),
        shortfall_policy=ShortfallPolicy(config.get("tax.shortfall_policy", "warn")),
    )
    logger.info(
        f"Tax engine ready (fx_policy={engine.fx_policy.value}, "
        f"shortfall_policy={engine.shortfall_policy.value})"
    )
    return engine


def build_scheduler(engine: TaxEngine, config: ConfigService) -> TaxScheduler:
    return TaxScheduler(
        engine,
        options=default_options(config),
        interval_seconds=config.get("scheduler.interval_seconds", 60),
        history_size=config.get("scheduler.history_size", 10),
    )
