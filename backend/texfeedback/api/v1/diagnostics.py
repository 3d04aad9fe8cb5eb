from fastapi import APIRouter

from texfeedback.api.schemas.schemas import (
    DiagnosticResponse,
    DiagnosticsRequest,
    DiagnosticsResponse,
)
from texfeedback.core.logparser.patterns import DiagnosticSeverity
from texfeedback.services import feedback_service

router = APIRouter(tags=["diagnostics"])


@router.post("/diagnostics", response_model=DiagnosticsResponse)
async def parse_diagnostics(data: DiagnosticsRequest):
    """Turn a compiler log into a flat, log-ordered diagnostics list."""
    diagnostics = await feedback_service.collect_diagnostics(data.log, data.root_file)
    counts = feedback_service.count_by_severity(diagnostics)
    return DiagnosticsResponse(
        diagnostics=[DiagnosticResponse.model_validate(d) for d in diagnostics],
        errors=counts[DiagnosticSeverity.ERROR],
        warnings=counts[DiagnosticSeverity.WARNING],
        infos=counts[DiagnosticSeverity.INFO],
    )
