"""
Export/import endpoints.

Provides:
- POST /export - Snapshot the requester's selected categories
- POST /import - Import a previously exported bundle into the requester's tenant

Service calls are blocking database work, so handlers are plain ``def`` and
run in the threadpool.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from flowport.api.rest.models import ImportResponse
from flowport.api.rest.dependencies import get_export_import_service, get_requester
from flowport.application.services import ExportImportService
from flowport.domain.models import Requester

router = APIRouter(prefix="/api/v1/export-import", tags=["Export/Import"])


@router.post("/export")
def export_data(
    body: Any = Body(..., description="Category flags, e.g. {\"chatflow\": true}"),
    requester: Requester = Depends(get_requester),
    service: ExportImportService = Depends(get_export_import_service),
) -> Dict[str, Any]:
    """
    Export the requester's rows for every selected category.
    
    Unselected categories come back as empty lists.
    """
    selection = service.convert_export_input(body)
    bundle = service.export_data(selection, requester)
    return bundle.to_dict()


@router.post("/import", response_model=ImportResponse)
def import_data(
    body: Dict[str, Any] = Body(..., description="Bundle produced by /export"),
    requester: Requester = Depends(get_requester),
    service: ExportImportService = Depends(get_export_import_service),
) -> ImportResponse:
    """
    Import a bundle, all or nothing.
    
    The requester is checked first; a malformed bundle is then rejected
    before anything is written.
    """
    service.import_data(requester, body)
    return ImportResponse(message="success")
