from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Policy, Subject, authenticated, ensure_allowed, owns
from moafinder.core.exceptions import NotFoundError
from moafinder.core.pagination import PaginationParams, count_query
from moafinder.notes.models import Note
from moafinder.notes.schemas import NoteCreate, NoteUpdate

NOTE_POLICY = Policy(
    name="note",
    read=owns("user_id"),
    create=authenticated,
    update=owns("user_id"),
    delete=owns("user_id"),
)


async def create_note(db: AsyncSession, subject: Subject | None, data: NoteCreate) -> Note:
    ensure_allowed(NOTE_POLICY, "create", subject)
    note = Note(user_id=subject.id, content=data.content)
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


async def list_notes(
    db: AsyncSession, subject: Subject, pagination: PaginationParams | None = None
) -> tuple[list[Note], int]:
    query = select(Note).where(Note.user_id == subject.id)

    total_count = await db.scalar(count_query(query)) or 0

    query = query.order_by(Note.created_at.desc())
    if pagination is not None:
        query = pagination.apply(query)
    result = await db.execute(query)
    return list(result.scalars().all()), total_count


async def get_note(db: AsyncSession, subject: Subject | None, note_id: uuid.UUID) -> Note:
    note = await db.get(Note, note_id)
    # Other users' notes look the same as missing ones.
    if note is None or not NOTE_POLICY.allows("read", subject, note):
        raise NotFoundError("Note", str(note_id))
    return note


async def update_note(
    db: AsyncSession, subject: Subject | None, note_id: uuid.UUID, data: NoteUpdate
) -> Note:
    note = await get_note(db, subject, note_id)
    ensure_allowed(NOTE_POLICY, "update", subject, note)
    note.content = data.content
    await db.commit()
    await db.refresh(note)
    return note


async def delete_note(db: AsyncSession, subject: Subject | None, note_id: uuid.UUID) -> None:
    note = await get_note(db, subject, note_id)
    ensure_allowed(NOTE_POLICY, "delete", subject, note)
    await db.delete(note)
    await db.commit()
