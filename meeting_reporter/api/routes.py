"""
API routes for Meeting Reporter.
"""

import asyncio
import time
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from .dependencies import get_calendar_client, get_orchestrator, get_pipeline_lock, get_settings
from .websocket import manager
from .models import (
    CommandRequest, CommandResponse, HealthCheck, ReportRequest, ResetResponse,
    SharedCalendarList, SharedCalendarOwner
)
from .. import __version__
from ..models.core import ReportResult
from ..orchestration.orchestrator import ReportOrchestrator
from ..tools.graph_client import GraphCalendarClient
from ..utils.config import SystemConfig
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Create router
router = APIRouter()

# Service start time for uptime calculation
_service_start_time = time.time()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/health", response_model=HealthCheck, tags=["Health"])
async def health_check(settings: SystemConfig = Depends(get_settings)):
    """Health check endpoint."""
    return HealthCheck(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - _service_start_time,
        analysis_enabled=settings.analysis_enabled,
        calendar_configured=bool(settings.graph.access_token),
        event_stream_connections=manager.connection_count
    )


@router.post("/reports", response_model=ReportResult, tags=["Reports"])
async def generate_report(
    request: ReportRequest,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
    lock: asyncio.Lock = Depends(get_pipeline_lock)
):
    """Run the full pipeline for a date range."""
    logger.info(f"Report requested for {request.start_date} to {request.end_date}")
    async with lock:
        return await orchestrator.generate_report(request.to_options())


@router.get("/reports/{filename}", tags=["Reports"])
async def download_report(filename: str, settings: SystemConfig = Depends(get_settings)):
    """Download a previously generated report."""
    # Only bare .xlsx names inside the output directory are served
    if Path(filename).name != filename or not filename.endswith(".xlsx"):
        raise HTTPException(status_code=400, detail="Invalid report filename")

    path = Path(settings.reports.output_dir) / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Report not found")

    return FileResponse(path, media_type=XLSX_MEDIA_TYPE, filename=filename)


@router.post("/commands", response_model=CommandResponse, tags=["Agents"])
async def run_command(
    request: CommandRequest,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
    lock: asyncio.Lock = Depends(get_pipeline_lock)
):
    """Route a free-text command to the matching agent."""
    async with lock:
        result = await orchestrator.run_command(request.command)
        context = orchestrator.shared_context

    return CommandResponse(
        success=result.success,
        message=result.message,
        agent_name=result.agent_name,
        iterations=result.iterations,
        error=result.error,
        meeting_count=len(context.meetings),
        analyzed_count=len(context.analysis_results),
        report_filename=context.report_filename
    )


@router.post("/reset", response_model=ResetResponse, tags=["Agents"])
async def reset_agents(
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
    lock: asyncio.Lock = Depends(get_pipeline_lock)
):
    """Reset every agent and clear the shared context."""
    async with lock:
        orchestrator.reset()
    return ResetResponse()


@router.get("/calendars/shared", response_model=SharedCalendarList, tags=["Calendar"])
async def list_shared_calendars(client: GraphCalendarClient = Depends(get_calendar_client)):
    """People whose calendars can be passed as ``target_user``."""
    owners = await client.list_shared_calendar_owners()
    return SharedCalendarList(owners=[SharedCalendarOwner(**owner) for owner in owners])
