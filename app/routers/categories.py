"""
Categories and age divisions API
"""
from typing import List, Dict, Any

from fastapi import APIRouter, Depends

from database.supabase_client import ScoringDB
from topaz.models import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    AgeDivision,
    AgeDivisionCreate,
    AgeDivisionUpdate,
)
from app.dependencies import get_db

router = APIRouter(prefix="/api", tags=["Categories"])


# =============================================
# Categories
# =============================================

@router.get("/competitions/{competition_id}/categories", response_model=List[Category])
async def list_categories(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_categories(competition_id)


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(body: CategoryCreate, db: ScoringDB = Depends(get_db)):
    return await db.create_category(body.model_dump())


@router.post("/categories/bulk", response_model=List[Category], status_code=201)
async def bulk_create_categories(body: List[CategoryCreate], db: ScoringDB = Depends(get_db)):
    return await db.bulk_create_categories([c.model_dump() for c in body])


@router.get("/categories/{category_id}", response_model=Category)
async def get_category(category_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_category(category_id)


@router.patch("/categories/{category_id}", response_model=Category)
async def update_category(category_id: str, body: CategoryUpdate, db: ScoringDB = Depends(get_db)):
    return await db.update_category(category_id, body.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: str, db: ScoringDB = Depends(get_db)):
    await db.delete_category(category_id)


@router.get("/categories/{category_id}/entries")
async def category_entries(category_id: str, db: ScoringDB = Depends(get_db)) -> List[Dict[str, Any]]:
    return await db.get_entries_by_category(category_id)


# =============================================
# Age divisions
# =============================================

@router.get("/competitions/{competition_id}/age-divisions", response_model=List[AgeDivision])
async def list_age_divisions(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_age_divisions(competition_id)


@router.post("/age-divisions", response_model=AgeDivision, status_code=201)
async def create_age_division(body: AgeDivisionCreate, db: ScoringDB = Depends(get_db)):
    return await db.create_age_division(body.model_dump())


@router.post("/age-divisions/bulk", response_model=List[AgeDivision], status_code=201)
async def bulk_create_age_divisions(body: List[AgeDivisionCreate], db: ScoringDB = Depends(get_db)):
    return await db.bulk_create_age_divisions([d.model_dump() for d in body])


@router.get("/age-divisions/{division_id}", response_model=AgeDivision)
async def get_age_division(division_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_age_division(division_id)


@router.patch("/age-divisions/{division_id}", response_model=AgeDivision)
async def update_age_division(division_id: str, body: AgeDivisionUpdate, db: ScoringDB = Depends(get_db)):
    return await db.update_age_division(division_id, body.model_dump(exclude_unset=True))


@router.delete("/age-divisions/{division_id}", status_code=204)
async def delete_age_division(division_id: str, db: ScoringDB = Depends(get_db)):
    await db.delete_age_division(division_id)


@router.get("/age-divisions/{division_id}/entries")
async def age_division_entries(division_id: str, db: ScoringDB = Depends(get_db)) -> List[Dict[str, Any]]:
    return await db.get_entries_by_age_division(division_id)
