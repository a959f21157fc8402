import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Subject
from moafinder.core.pagination import PaginationParams, build_pagination_meta, get_pagination
from moafinder.dependencies import get_db, get_subject
from moafinder.tags.models import TagCategory
from moafinder.tags.schemas import TagCreate, TagResponse, TagUpdate
from moafinder.tags.service import create_tag, delete_tag, get_tag, list_tags, update_tag

router = APIRouter()


@router.get("")
async def get_tags(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    category: Optional[TagCategory] = Query(None),
) -> dict:
    tags, total_count = await list_tags(db, category, pagination)
    return {
        "data": [TagResponse.model_validate(t) for t in tags],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.post("", status_code=201)
async def add_tag(
    body: TagCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    tag = await create_tag(db, subject, body)
    return {"data": TagResponse.model_validate(tag)}


@router.get("/{tag_id}")
async def get_single_tag(
    tag_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    tag = await get_tag(db, tag_id)
    return {"data": TagResponse.model_validate(tag)}


@router.put("/{tag_id}")
async def edit_tag(
    tag_id: uuid.UUID,
    body: TagUpdate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    tag = await update_tag(db, subject, tag_id, body)
    return {"data": TagResponse.model_validate(tag)}


@router.delete("/{tag_id}")
async def remove_tag(
    tag_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await delete_tag(db, subject, tag_id)
    return {"data": {"message": "Tag deleted"}}
