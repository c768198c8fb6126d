"""
History report endpoint for API v1.

``GET /csv-report`` streams the membership history of one calendar
month as CSV.  The month is taken from the JSON body
(``{"year": 2023, "month": 8}``) or, for clients that cannot send a
body with ``GET``, from the ``year`` and ``month`` query parameters.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from segment_service_api.app.api.deps import get_history
from segment_service_api.app.schemas.report import ReportRequest
from segment_service_api.app.services.history_service import HistoryLog
from segment_service_api.app.services.outcome_reporter import api_response
from segment_service_api.app.services.report_service import csv_report, report_filename

router = APIRouter()


@router.get("/csv-report")
def get_csv_report(
    body: Optional[ReportRequest] = Body(None),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    history: HistoryLog = Depends(get_history),
):
    if body is None:
        if year is None or month is None:
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=api_response("error", "Both 'year' and 'month' are required"),
            )
        body = ReportRequest(year=year, month=month)
    lines = csv_report(history, body.year, body.month)
    filename = report_filename(body.year, body.month)
    return StreamingResponse(
        lines,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
