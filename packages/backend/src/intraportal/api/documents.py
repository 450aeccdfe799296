"""Document API routes — multipart upload, listing, sharing."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.document import DocumentList, DocumentRead, DocumentShare
from intraportal.services.document_service import DocumentService
from intraportal.services.storage import UploadRejected

router = APIRouter(prefix="/documents")


def _svc(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


def _split_tags(raw: Optional[list[str]]) -> list[str]:
    """Accept repeated `tags` fields and/or comma-separated values."""
    tags: list[str] = []
    for value in raw or []:
        tags.extend(t.strip() for t in value.split(",") if t.strip())
    return tags


@router.get("", response_model=DocumentList)
async def list_documents(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    category: Optional[str] = None,
    svc: DocumentService = Depends(_svc),
):
    rows = await svc.list_documents(limit=limit, offset=offset, category=category)
    items = [
        DocumentRead.model_validate(doc).model_copy(update={"uploaded_by_name": name})
        for doc, name in rows
    ]
    return DocumentList(items=items, count=len(items))


@router.get("/{document_id}", response_model=DocumentRead)
async def get_document(document_id: uuid.UUID, svc: DocumentService = Depends(_svc)):
    document = await svc.get_document(document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.post("/upload", response_model=DocumentRead, status_code=201)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    tags: Optional[list[str]] = Form(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: DocumentService = Depends(_svc),
):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    try:
        return await svc.upload(
            identity.user_id,
            file.file,
            file.filename,
            title=title,
            category=category,
            tags=_split_tags(tags),
        )
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        await file.close()


@router.post("/{document_id}/share", response_model=DocumentRead)
async def share_document(
    document_id: uuid.UUID,
    body: DocumentShare,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: DocumentService = Depends(_svc),
):
    document = await svc.share(document_id, identity.user_id, body.shared_with)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.delete("/{document_id}")
async def delete_document(
    document_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: DocumentService = Depends(_svc),
):
    if not await svc.delete_document(document_id, identity.user_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return {"message": "Document deleted successfully"}
