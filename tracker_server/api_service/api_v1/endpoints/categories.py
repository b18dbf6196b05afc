from typing import List
from fastapi import APIRouter, HTTPException, status
import uuid

from tracker_server.api_service import schemas
from tracker_server.api_service.api_v1.deps import DBDep, OwnerDep
from tracker_server.api_service.core import sources
from tracker_server.processing_service.logic.validation import patch_values

router = APIRouter()


async def get_category_by_id(db, owner_id: uuid.UUID, category_id: uuid.UUID):
    category = await sources.get_category(db, owner_id, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return category


@router.get("", response_model=List[schemas.Category])
async def get_categories(db: DBDep, owner_id: OwnerDep):
    """Active categories first, newest first within each group."""
    categories = await sources.list_categories(db, owner_id)
    return [schemas.Category.model_validate(category) for category in categories]


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: schemas.CategoryCreate,
    db: DBDep,
    owner_id: OwnerDep,
):
    category = await sources.create_category(db, owner_id, category_in.name, category_in.color)
    return schemas.Category.model_validate(category)


@router.patch("/{category_id}", response_model=schemas.Category)
async def update_category(
    category_id: uuid.UUID,
    category_update: schemas.CategoryUpdate,
    db: DBDep,
    owner_id: OwnerDep,
):
    category = await get_category_by_id(db, owner_id, category_id)
    values = patch_values(category_update)
    if values:
        category = await sources.update_category(db, category, values)
    return schemas.Category.model_validate(category)


@router.delete("/{category_id}", response_model=schemas.Category)
async def archive_category(
    category_id: uuid.UUID,
    db: DBDep,
    owner_id: OwnerDep,
):
    """Categories are archived, never removed, so past records keep their label."""
    category = await get_category_by_id(db, owner_id, category_id)
    category = await sources.archive_category(db, category)
    return schemas.Category.model_validate(category)
