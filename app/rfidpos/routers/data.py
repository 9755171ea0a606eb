from fastapi import APIRouter, Depends, Query, status

from app.rfidpos.core.deps import get_terminal
from app.rfidpos.schemas.exports import ExportDocument, ImportSummary

router = APIRouter()


@router.get("/rfidpos/data/export", response_model=ExportDocument, response_model_exclude_none=True)
def export_data(terminal=Depends(get_terminal)):
    return terminal.export_document()


@router.post("/rfidpos/data/import", response_model=ImportSummary)
def import_data(document: ExportDocument, source: str = Query("upload"), terminal=Depends(get_terminal)):
    return terminal.import_document(document, source)


@router.delete("/rfidpos/data", status_code=status.HTTP_204_NO_CONTENT)
def wipe_data(terminal=Depends(get_terminal)):
    terminal.wipe()
