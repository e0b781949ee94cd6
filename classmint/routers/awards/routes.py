from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from werkzeug.utils import secure_filename

from classmint.dependencies import get_db, require_role
from classmint.errors import ValidationError
from classmint.models import Role
from classmint.routers.students.routes import award_payload, student_payload
from classmint.schemas.award import TransferForm
from classmint.services.award_creation import (
    DEFAULT_POINTS,
    create_award,
    list_unassigned_awards,
    validate_award_fields,
)
from classmint.services.awarding import CATALOG, transfer_award
from classmint.services.images import media_dir, store_generated_art, store_uploaded_art
from classmint.session import SessionContext
from classmint.utils import flash

log = logging.getLogger(__name__)

router = APIRouter(prefix="/awards", tags=["awards"])


@router.get("/catalog", name="awards.catalog")
def catalog():
    return [
        {"title": t.title, "description": t.description, "points": t.points, "icon": t.icon}
        for t in CATALOG
    ]


@router.post("/transfer", name="awards.transfer")
def transfer(
    request: Request,
    form: TransferForm,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    outcome = transfer_award(
        session, context, form.award, form.student_id, idempotency_key=form.idempotency_key
    )
    flash(request, f"{form.award} has been transferred successfully!", "success")
    return {
        "ok": True,
        "transfer_key": outcome.transfer_key,
        "award": award_payload(outcome.nft),
        "transaction": {
            "id": outcome.transaction.id,
            "nft_id": outcome.transaction.nft_id,
            "from_wallet_id": outcome.transaction.from_wallet_id,
            "to_wallet_id": outcome.transaction.to_wallet_id,
            "transaction_hash": outcome.transaction.transaction_hash,
            "status": outcome.transaction.status,
        },
        "student": student_payload(outcome.student),
    }


@router.post("/", status_code=201, name="awards.create")
def create(
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    points: int = Form(DEFAULT_POINTS),
    generate_image: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    # Reject the typed fields before any artwork is written to disk
    title, description = validate_award_fields(title, description, points)
    image_url = None
    if image is not None and image.filename:
        try:
            image_url = store_uploaded_art(image.file.read(), image.filename, title)
        except ValueError as e:
            raise ValidationError(str(e)) from e
    elif generate_image:
        image_url = store_generated_art(title)

    nft = create_award(session, context, title, description, points, image_url)
    flash(request, "NFT Award created successfully", "success")
    return award_payload(nft)


@router.get("/unassigned", name="awards.unassigned")
def unassigned(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    return [award_payload(n) for n in list_unassigned_awards(session, context)]


@router.get("/media/{filename}", name="awards.media")
def media(filename: str):
    safe = secure_filename(filename)
    path = os.path.join(media_dir(), safe)
    if not safe or not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="Image not found")
    return FileResponse(path, media_type="image/png")
