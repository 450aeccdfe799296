"""Document service — uploaded files, metadata and sharing."""

import uuid
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.db.models import Document, User
from intraportal.events.store import ActivityStore
from intraportal.events.types import CREATED, DELETED, DOCUMENT, SHARED
from intraportal.realtime.bridge import publish_change
from intraportal.services.storage import DocumentStorage


class DocumentService:
    def __init__(self, db: AsyncSession, storage: DocumentStorage | None = None):
        self.db = db
        self.storage = storage or DocumentStorage()
        self.activity = ActivityStore(db)

    async def list_documents(
        self,
        limit: int = 20,
        offset: int = 0,
        category: Optional[str] = None,
    ) -> list[tuple[Document, str]]:
        q = select(Document, User.name).join(User, Document.uploaded_by == User.id)
        if category:
            q = q.where(Document.category == category)
        q = q.order_by(Document.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(q)
        return [(doc, name) for doc, name in result.all()]

    async def get_document(self, document_id: uuid.UUID) -> Document | None:
        return await self.db.get(Document, document_id)

    async def upload(
        self,
        user_id: str,
        source: BinaryIO,
        filename: str,
        *,
        title: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> Document:
        """Store the file, then record it. Raises UploadRejected."""
        stored = await self.storage.save(source, filename)

        document = Document(
            title=title or stored.original_name,
            file_name=stored.original_name,
            file_path=stored.path,
            file_type=stored.extension,
            file_size=stored.size,
            uploaded_by=uuid.UUID(user_id),
            category=category,
            tags=tags or [],
        )
        self.db.add(document)
        try:
            await self.db.flush()
            await self.activity.append(
                user_id=user_id,
                resource_type=DOCUMENT,
                action=CREATED,
                resource_id=document.id,
                metadata={"file_name": stored.original_name, "size": stored.size},
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self.storage.delete(stored.path)
            raise

        await publish_change(DOCUMENT, CREATED, _payload(document))
        return document

    async def share(
        self, document_id: uuid.UUID, user_id: str, shared_with: list[uuid.UUID]
    ) -> Optional[Document]:
        document = await self.db.get(Document, document_id)
        if document is None:
            return None

        document.shared_with = [str(u) for u in shared_with]
        document.is_shared = True
        document.updated_at = datetime.now(timezone.utc)

        await self.activity.append(
            user_id=user_id,
            resource_type=DOCUMENT,
            action=SHARED,
            resource_id=document.id,
            metadata={"shared_with": document.shared_with},
        )
        await self.db.commit()
        await publish_change(DOCUMENT, SHARED, _payload(document))
        return document

    async def delete_document(self, document_id: uuid.UUID, user_id: str) -> bool:
        document = await self.db.get(Document, document_id)
        if document is None:
            return False

        path = document.file_path
        await self.db.delete(document)
        await self.activity.append(
            user_id=user_id,
            resource_type=DOCUMENT,
            action=DELETED,
            resource_id=document_id,
            metadata={"file_name": document.file_name},
        )
        await self.db.commit()
        await self.storage.delete(path)
        await publish_change(DOCUMENT, DELETED, {"id": str(document_id)})
        return True


def _payload(document: Document) -> dict:
    return {
        "id": str(document.id),
        "title": document.title,
        "file_name": document.file_name,
        "category": document.category,
        "is_shared": document.is_shared,
    }
