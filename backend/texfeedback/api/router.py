from fastapi import APIRouter

from texfeedback.api.v1.diagnostics import router as diagnostics_router
from texfeedback.api.v1.synctex import router as synctex_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(diagnostics_router)
api_router.include_router(synctex_router)
