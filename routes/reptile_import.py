"""
Reptile import API routes.

Two-phase protocol: the preview call parses and checks an uploaded
spreadsheet without writing anything; the commit call receives the
previewed rows back together with the indices the user chose.
"""

from fastapi import APIRouter, File, Header, Request, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from config import settings
from exceptions import (
    AppError,
    DatabaseError,
    FileTooLargeError,
    InvalidImportRequestError,
    NoFileProvidedError,
)
from models.reptile_import import ImportCommitRequest
from parsers.spreadsheet_parser import parse_spreadsheet, resolve_content_type
from services.auth_service import get_auth_service
from services.import_commit_service import get_import_commit_service
from services.import_preview_service import build_preview
from services.rate_limit_service import get_rate_limit_service
from services.subscription_service import get_subscription_service

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/preview")
async def preview_import(
    file: Optional[UploadFile] = File(None),
    authorization: Optional[str] = Header(None),
):
    """
    Dry-run an uploaded CSV/XLSX file.

    Returns the mapped headers, normalized rows, per-row validity,
    parent reference checks and taxonomy counts.

    Raises:
        401: Not authenticated
        429: Too many imports in the rate window
        400: Missing, oversized, unsupported or empty file; too many rows
        403: Import would exceed the subscription allowance
    """
    try:
        user_id = get_auth_service().get_user_id(authorization)
        get_rate_limit_service().check(user_id)

        if file is None:
            raise NoFileProvidedError()

        content = await file.read()
        if len(content) > settings.import_max_file_bytes:
            raise FileTooLargeError(len(content), settings.import_max_file_bytes)

        content_type = resolve_content_type(file.content_type, file.filename)

        logger.info(
            "import_upload_received",
            user_id=user_id,
            filename=file.filename,
            content_type=content_type,
            size=len(content)
        )

        headers, raw_rows = parse_spreadsheet(content, content_type)
        report = build_preview(raw_rows, headers=headers)

        get_subscription_service().check_allowance(user_id, report.total_rows)

        return report.to_dict()

    except Exception as e:
        return handle_error(e)


@router.put("")
async def commit_import(
    request: Request,
    authorization: Optional[str] = Header(None),
):
    """
    Import the selected rows of a previewed batch.

    Body: {rows, selectedRows, fileName?}

    Row-level failures are reported in `errors`; the call itself only
    fails on batch-level conditions.

    Raises:
        401: Not authenticated
        429: Too many imports in the rate window
        400: Malformed body
        403: Import would exceed the subscription allowance
        500: Species/morph creation failed
    """
    try:
        user_id = get_auth_service().get_user_id(authorization)
        get_rate_limit_service().check(user_id)

        try:
            body = ImportCommitRequest.model_validate(await request.json())
        except ValueError as e:
            raise InvalidImportRequestError(details={"reason": str(e)})

        get_subscription_service().check_allowance(user_id, len(set(body.selected_rows)))

        result = get_import_commit_service().commit(user_id, body.rows, body.selected_rows)

        if result.success:
            try:
                get_rate_limit_service().log_import(
                    user_id,
                    body.file_name,
                    len(body.selected_rows)
                )
            except DatabaseError as e:
                # Records are already written; report them anyway
                logger.warning("import_log_skipped", user_id=user_id, error=e.message)

        return result.to_dict()

    except Exception as e:
        return handle_error(e)
