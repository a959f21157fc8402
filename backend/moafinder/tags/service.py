from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Policy, Subject, allow, ensure_allowed, is_admin, is_staff
from moafinder.core.exceptions import ConflictError, NotFoundError
from moafinder.core.pagination import PaginationParams, count_query
from moafinder.tags.models import Tag, TagCategory
from moafinder.tags.schemas import TagCreate, TagUpdate

TAG_POLICY = Policy(
    name="tag",
    read=allow,
    create=is_staff,
    update=is_staff,
    delete=is_admin,
)


async def _ensure_unique_slug(
    db: AsyncSession, slug: str, exclude_id: uuid.UUID | None = None
) -> None:
    query = select(Tag.id).where(Tag.slug == slug)
    if exclude_id is not None:
        query = query.where(Tag.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(f"A tag with slug '{slug}' already exists.")


async def create_tag(db: AsyncSession, subject: Subject | None, data: TagCreate) -> Tag:
    ensure_allowed(TAG_POLICY, "create", subject)
    await _ensure_unique_slug(db, data.slug)
    tag = Tag(**data.model_dump())
    db.add(tag)
    await db.commit()
    await db.refresh(tag)
    return tag


async def list_tags(
    db: AsyncSession,
    category: TagCategory | None = None,
    pagination: PaginationParams | None = None,
) -> tuple[list[Tag], int]:
    query = select(Tag)
    if category is not None:
        query = query.where(Tag.category == category)

    total_count = await db.scalar(count_query(query)) or 0

    query = query.order_by(Tag.name.asc())
    if pagination is not None:
        query = pagination.apply(query)
    result = await db.execute(query)
    return list(result.scalars().all()), total_count


async def get_tag(db: AsyncSession, tag_id: uuid.UUID) -> Tag:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError("Tag", str(tag_id))
    return tag


async def get_tags_by_ids(db: AsyncSession, tag_ids: list[uuid.UUID]) -> list[Tag]:
    if not tag_ids:
        return []
    result = await db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
    tags = list(result.scalars().all())
    missing = set(tag_ids) - {tag.id for tag in tags}
    if missing:
        raise NotFoundError("Tag", str(sorted(missing, key=str)[0]))
    return tags


async def update_tag(
    db: AsyncSession, subject: Subject | None, tag_id: uuid.UUID, data: TagUpdate
) -> Tag:
    tag = await get_tag(db, tag_id)
    ensure_allowed(TAG_POLICY, "update", subject, tag)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("slug"):
        await _ensure_unique_slug(db, update_data["slug"], exclude_id=tag.id)
    for field, value in update_data.items():
        if value is None and field in ("name", "slug"):
            continue
        setattr(tag, field, value)
    await db.commit()
    await db.refresh(tag)
    return tag


async def delete_tag(db: AsyncSession, subject: Subject | None, tag_id: uuid.UUID) -> None:
    tag = await get_tag(db, tag_id)
    ensure_allowed(TAG_POLICY, "delete", subject, tag)
    await db.delete(tag)
    await db.commit()
