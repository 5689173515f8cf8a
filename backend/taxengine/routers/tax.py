"""Tax computation, export and scheduler endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from ..models import TaxComputationResult
from ..services.errors import InputValidationError, InsufficientLotsError, MissingRateError
from ..services.tax_engine import TaxEngine, TaxEngineOptions
from ..services.tax_export import build_tax_csv, build_tax_pdf
from ..services.tax_scheduler import TaxScheduler

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================

class RunSummaryResponse(BaseModel):
    """Headline figures of one run."""
    realized_gains: float
    income: float
    base_currency: str
    holdings_value: float
    transactions_evaluated: int


class RunHistoryEntry(BaseModel):
    """One entry of the scheduler's run history."""
    run_at: datetime
    realized_gains: float
    income: float


class SchedulerStatusResponse(BaseModel):
    """Scheduler status response model."""
    status: str
    last_run_at: Optional[datetime]
    next_run_at: Optional[datetime]
    interval_seconds: float
    last_summary: Optional[RunSummaryResponse]
    last_error: Optional[str]
    run_history: List[RunHistoryEntry]
    options: Dict[str, str]


# ============================================================================
# Dependencies
# ============================================================================

def get_tax_engine(request: Request) -> TaxEngine:
    """Engine attached to the application at startup."""
    return request.app.state.tax_engine


def get_tax_scheduler(request: Request) -> TaxScheduler:
    """Scheduler attached to the application at startup."""
    return request.app.state.tax_scheduler


def get_report_options(
    request: Request,
    cost_basis: Optional[str] = Query(None, description="FIFO, LIFO or HIFO"),
    base_currency: Optional[str] = Query(None, description="Reporting currency"),
    start_date: Optional[str] = Query(None, description="Inclusive ISO-8601 start"),
    end_date: Optional[str] = Query(None, description="Inclusive ISO-8601 end"),
    venues: Optional[List[str]] = Query(None, description="Venue allow-list"),
    jurisdiction: Optional[str] = Query(None, description="Label for report headers"),
) -> TaxEngineOptions:
    """Build run options; unset parameters fall back to the app defaults."""
    defaults: TaxEngineOptions = getattr(request.app.state, "default_options", None) or TaxEngineOptions()
    return TaxEngineOptions(
        cost_basis=cost_basis or defaults.cost_basis,
        base_currency=base_currency or defaults.base_currency,
        start_date=start_date,
        end_date=end_date,
        venues=venues,
        jurisdiction=jurisdiction or defaults.jurisdiction,
    )


def _run(engine: TaxEngine, options: TaxEngineOptions) -> TaxComputationResult:
    """Run the engine, translating engine errors to HTTP errors."""
    try:
        return engine.run(options)
    except InputValidationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except (MissingRateError, InsufficientLotsError) as e:
        raise HTTPException(status_code=409, detail=str(e))


def _export_filename(options: TaxEngineOptions, extension: str) -> str:
    return f"tax-report-{str(options.cost_basis).lower()}-{options.base_currency.lower()}.{extension}"


# ============================================================================
# Tax Report
# ============================================================================

@router.get("/report")
async def get_tax_report(
    options: TaxEngineOptions = Depends(get_report_options),
    engine: TaxEngine = Depends(get_tax_engine),
) -> Dict[str, Any]:
    """Compute lots, realized gains, income and holdings.

    An empty window returns a valid, empty report.
    """
    return _run(engine, options).to_dict()


@router.get("/export/csv")
async def export_tax_csv(
    options: TaxEngineOptions = Depends(get_report_options),
    engine: TaxEngine = Depends(get_tax_engine),
):
    """Export the report as CSV."""
    result = _run(engine, options)
    return Response(
        content=build_tax_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={_export_filename(options, 'csv')}"},
    )


@router.get("/export/pdf")
async def export_tax_pdf(
    options: TaxEngineOptions = Depends(get_report_options),
    engine: TaxEngine = Depends(get_tax_engine),
):
    """Export the report as PDF."""
    result = _run(engine, options)
    return Response(
        content=build_tax_pdf(result, jurisdiction=options.jurisdiction),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={_export_filename(options, 'pdf')}"},
    )


# ============================================================================
# Scheduler
# ============================================================================

@router.get("/scheduler/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status(scheduler: TaxScheduler = Depends(get_tax_scheduler)):
    """Get tax sync scheduler status."""
    return scheduler.get_status()


@router.post("/scheduler/run", response_model=SchedulerStatusResponse)
async def trigger_scheduler_run(scheduler: TaxScheduler = Depends(get_tax_scheduler)):
    """Run a tax sync now, outside the schedule."""
    try:
        return scheduler.run_once()
    except InputValidationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except (MissingRateError, InsufficientLotsError) as e:
        raise HTTPException(status_code=409, detail=str(e))
