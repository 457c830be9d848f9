"""
api/routes/v1/designs.py -- Design submission routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /designs                          -- list (admins: all, users: own)
  GET    /designs/export                   -- spreadsheet download (ADMIN)
  POST   /designs                          -- submit a design
  GET    /designs/{design_id}              -- one design
  PUT    /designs/{design_id}              -- partial update
  DELETE /designs/{design_id}              -- delete; returns the deleted design
  GET    /designs/{design_id}/files/{kind} -- download logo or media
  POST   /designs/{design_id}/files/{kind} -- multipart upload replacing logo or media

Visibility: a design is visible to its owner and to admins. Anyone else gets
a 404 rather than a 403 so design IDs cannot be enumerated.

Attachments arrive either inline as base64 data URLs in the JSON body (the
submission form) or as multipart uploads. Both paths run the same
designs.files checks and are stored as data URLs.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, UploadFile

from api.models import DesignCreate, DesignResponse, DesignUpdate, ErrorDetail, ExportFormatEnum
from auth.dependencies import get_current_user, require_admin
from auth.models import User
from auth.store import UserStore
from core.config import get_settings
from designs.export import CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, export_filename, to_csv, to_xlsx
from designs.files import KINDS, LOGO, AttachmentError, check_data_url, parse_data_url, to_data_url, validate_attachment
from designs.models import Design
from designs.store import DesignStore

logger = logging.getLogger("designportal.designs")

# Every design route requires authentication.
router = APIRouter(dependencies=[Depends(get_current_user)])

# Columns that may not be cleared by sending null in an update.
_REQUIRED_FIELDS = frozenset(
    {
        "design_number",
        "style",
        "gold_karat",
        "approx_gold_weight",
        "stone_type",
        "diamond_shape",
        "carat_weight",
        "clarity",
        "side_stones",
        "marking",
    }
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _max_bytes(kind: str) -> int:
    settings = get_settings()
    return settings.max_logo_bytes if kind == LOGO else settings.max_media_bytes


def _attachment_error(exc: AttachmentError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(code="invalid_attachment", message=str(exc)).model_dump(),
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Design not found."},
    )


def _get_visible_design(store: DesignStore, design_id: int, user: User) -> Design:
    design = store.get_design(design_id)
    if design is None or (design.user_id != user.id and not user.is_admin):
        raise _not_found()
    return design


def _check_inline_attachments(fields: dict) -> None:
    for kind in KINDS:
        try:
            check_data_url(kind, fields.get(f"{kind}_data"), _max_bytes(kind))
        except AttachmentError as exc:
            raise _attachment_error(exc) from exc


def _new_design_number() -> str:
    return f"DN-{int(time.time() * 1000)}"


# ---------------------------------------------------------------------------
# GET /designs
# ---------------------------------------------------------------------------


@router.get("/designs", response_model=list[DesignResponse])
def list_designs(request: Request, current_user: User = Depends(get_current_user)) -> list[DesignResponse]:
    """Admins see every submission; customers see their own."""
    store: DesignStore = request.app.state.design_store
    designs = store.list_designs(user_id=None if current_user.is_admin else current_user.id)
    return [DesignResponse.from_design(d) for d in designs]


# ---------------------------------------------------------------------------
# GET /designs/export -- must be registered before /designs/{design_id}
# ---------------------------------------------------------------------------


@router.get("/designs/export", dependencies=[Depends(require_admin)])
def export_designs(request: Request, format: ExportFormatEnum = ExportFormatEnum.xlsx) -> Response:
    """Download every submission as an Excel workbook (default) or CSV."""
    store: DesignStore = request.app.state.design_store
    designs = store.list_designs()
    if not designs:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_designs", "message": "No designs to export."},
        )

    user_store: UserStore = request.app.state.user_store
    owners = {u.id: u.email for u in user_store.list_users()}

    if format is ExportFormatEnum.csv:
        content: bytes = to_csv(designs, owners).encode("utf-8")
        media_type = CSV_MEDIA_TYPE
    else:
        content = to_xlsx(designs, owners)
        media_type = XLSX_MEDIA_TYPE

    logger.info("Exported %d designs as %s", len(designs), format.value)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(format.value)}"'},
    )


# ---------------------------------------------------------------------------
# POST /designs
# ---------------------------------------------------------------------------


@router.post("/designs", response_model=DesignResponse, status_code=201)
def create_design(
    request: Request,
    body: DesignCreate,
    current_user: User = Depends(get_current_user),
) -> DesignResponse:
    """Record a new submission owned by the caller."""
    _check_inline_attachments(body.model_dump(include={"logo_data", "media_data"}))

    design = Design(
        user_id=current_user.id,
        design_number=body.design_number or _new_design_number(),
        style=body.style.value,
        gold_karat=body.gold_karat.value,
        approx_gold_weight=body.approx_gold_weight,
        stone_type=body.stone_type.value,
        diamond_shape=body.diamond_shape.value,
        carat_weight=body.carat_weight,
        clarity=body.clarity.value,
        side_stones=[s.to_domain() for s in body.side_stones],
        marking=body.marking,
        logo_file_name=body.logo_file_name,
        logo_data=body.logo_data,
        media_file_name=body.media_file_name,
        media_data=body.media_data,
    )
    store: DesignStore = request.app.state.design_store
    design_id = store.create_design(design)
    logger.info("Design %d submitted by user_id=%d", design_id, current_user.id)
    return DesignResponse.from_design(store.get_design(design_id))


# ---------------------------------------------------------------------------
# GET / PUT / DELETE /designs/{design_id}
# ---------------------------------------------------------------------------


@router.get("/designs/{design_id}", response_model=DesignResponse)
def get_design(
    request: Request,
    design_id: int,
    current_user: User = Depends(get_current_user),
) -> DesignResponse:
    store: DesignStore = request.app.state.design_store
    return DesignResponse.from_design(_get_visible_design(store, design_id, current_user))


@router.put("/designs/{design_id}", response_model=DesignResponse)
def update_design(
    request: Request,
    design_id: int,
    body: DesignUpdate,
    current_user: User = Depends(get_current_user),
) -> DesignResponse:
    """Apply the fields present in the body.

    Sending null for an attachment or file name clears it; null for any other
    field is ignored.
    """
    store: DesignStore = request.app.state.design_store
    _get_visible_design(store, design_id, current_user)

    fields = body.model_dump(exclude_unset=True, mode="json")
    fields = {k: v for k, v in fields.items() if v is not None or k not in _REQUIRED_FIELDS}
    if "side_stones" in fields:
        fields["side_stones"] = [s.to_domain() for s in body.side_stones or []]
    _check_inline_attachments(fields)

    if fields:
        store.update_design(design_id, **fields)
    return DesignResponse.from_design(store.get_design(design_id))


@router.delete("/designs/{design_id}", response_model=DesignResponse)
def delete_design(
    request: Request,
    design_id: int,
    current_user: User = Depends(get_current_user),
) -> DesignResponse:
    store: DesignStore = request.app.state.design_store
    design = _get_visible_design(store, design_id, current_user)
    store.delete_design(design_id)
    logger.info("Design %d deleted by user_id=%d", design_id, current_user.id)
    return DesignResponse.from_design(design)


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Unknown attachment kind '{kind}'."},
        )


@router.get("/designs/{design_id}/files/{kind}")
def download_attachment(
    request: Request,
    design_id: int,
    kind: str,
    current_user: User = Depends(get_current_user),
) -> Response:
    """Return the decoded logo or media file with its stored content type."""
    _check_kind(kind)
    store: DesignStore = request.app.state.design_store
    design = _get_visible_design(store, design_id, current_user)

    data_url: Optional[str] = getattr(design, f"{kind}_data")
    if not data_url:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Design has no {kind} file."},
        )
    try:
        mime_type, payload = parse_data_url(data_url)
    except AttachmentError as exc:
        logger.error("Stored %s for design %d is unreadable: %s", kind, design_id, exc)
        raise
    filename = (getattr(design, f"{kind}_file_name") or kind).replace('"', "")
    return Response(
        content=payload,
        media_type=mime_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.post("/designs/{design_id}/files/{kind}", response_model=DesignResponse)
async def upload_attachment(
    request: Request,
    design_id: int,
    kind: str,
    file: UploadFile,
    current_user: User = Depends(get_current_user),
) -> DesignResponse:
    """Replace the logo or media file with a multipart upload."""
    _check_kind(kind)
    store: DesignStore = request.app.state.design_store
    _get_visible_design(store, design_id, current_user)

    max_bytes = _max_bytes(kind)
    raw = await file.read(max_bytes + 1)
    if len(raw) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=ErrorDetail(
                code="file_too_large",
                message=f"Upload must be {max_bytes // (1024 * 1024)} MB or smaller.",
            ).model_dump(),
        )

    # Drop parameters such as "; charset=binary" before matching the allow-list.
    mime_type = (file.content_type or "application/octet-stream").split(";", 1)[0].strip().lower()
    try:
        validate_attachment(kind, mime_type, len(raw), max_bytes)
    except AttachmentError as exc:
        raise _attachment_error(exc) from exc

    store.update_design(
        design_id,
        **{f"{kind}_data": to_data_url(mime_type, raw), f"{kind}_file_name": file.filename or kind},
    )
    return DesignResponse.from_design(store.get_design(design_id))
