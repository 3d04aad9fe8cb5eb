from pydantic import BaseModel

from texfeedback.core.logparser.patterns import DiagnosticSeverity


# --- Diagnostics ---
class DiagnosticsRequest(BaseModel):
    log: str
    root_file: str


class DiagnosticResponse(BaseModel):
    file: str
    line: int
    severity: DiagnosticSeverity
    message: str
    error_pos_text: str | None = None

    model_config = {"from_attributes": True}


class DiagnosticsResponse(BaseModel):
    diagnostics: list[DiagnosticResponse]
    errors: int = 0
    warnings: int = 0
    infos: int = 0


# --- SyncTeX ---
class ForwardSyncResponse(BaseModel):
    page: int
    x: float
    y: float

    model_config = {"from_attributes": True}


class InverseSyncResponse(BaseModel):
    file: str
    line: int
    column: int = 0

    model_config = {"from_attributes": True}


class LineMapEntryResponse(BaseModel):
    line: int
    page: int
    y: float

    model_config = {"from_attributes": True}


class LineMapResponse(BaseModel):
    line_map: list[LineMapEntryResponse]
