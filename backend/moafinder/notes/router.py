import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Subject
from moafinder.core.pagination import PaginationParams, build_pagination_meta, get_pagination
from moafinder.dependencies import get_db, get_subject
from moafinder.notes.schemas import NoteCreate, NoteResponse, NoteUpdate
from moafinder.notes.service import create_note, delete_note, get_note, list_notes, update_note

router = APIRouter()


@router.get("")
async def get_notes(
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
) -> dict:
    notes, total_count = await list_notes(db, subject, pagination)
    return {
        "data": [NoteResponse.model_validate(n) for n in notes],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.post("", status_code=201)
async def add_note(
    body: NoteCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    note = await create_note(db, subject, body)
    return {"data": NoteResponse.model_validate(note)}


@router.get("/{note_id}")
async def get_single_note(
    note_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    note = await get_note(db, subject, note_id)
    return {"data": NoteResponse.model_validate(note)}


@router.put("/{note_id}")
async def edit_note(
    note_id: uuid.UUID,
    body: NoteUpdate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    note = await update_note(db, subject, note_id, body)
    return {"data": NoteResponse.model_validate(note)}


@router.delete("/{note_id}")
async def remove_note(
    note_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await delete_note(db, subject, note_id)
    return {"data": {"message": "Note deleted"}}
