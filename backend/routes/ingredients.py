from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_db
from repositories.ingredient import IngredientRepository
from schemas.product import Ingredient, IngredientCreate
from schemas.user import User
from utils.tokenJWT import role_required

router = APIRouter(prefix="/ingredients", tags=["Ingredients"])


@router.get("", response_model=List[Ingredient])
def list_ingredients(
    name: Optional[str] = Query(None, description="Filter by name fragment"),
    db: Session = Depends(get_db),
):
    ingredients = IngredientRepository(db)
    if name and name.strip():
        return ingredients.search_by_name(name.strip())
    return ingredients.records.find_all()


@router.post("", response_model=Ingredient, status_code=status.HTTP_201_CREATED)
def add_ingredient(
    payload: IngredientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    ingredients = IngredientRepository(db)
    name = payload.name.strip()
    # Names are compared case-insensitively
    if ingredients.find_by_name(name):
        raise HTTPException(status_code=409, detail="Ingredient already exists")
    return ingredients.records.create({"name": name})
