# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from repositories.ingredient import IngredientRepository
from repositories.product import ProductRepository
from schemas.product import ProductWithIngredients, ProductCreate, ProductPatch
from schemas.user import User
from utils.audit import write_log
from utils.tokenJWT import role_required

router = APIRouter(prefix="/products", tags=["Products"])

admin_only = role_required("admin")


def _get_or_404(products: ProductRepository, product_id: int) -> ProductWithIngredients:
    product = products.find_by_id_with_ingredients(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# =========================
# LISTA / WYSZUKIWANIE
# =========================
@router.get("", response_model=List[ProductWithIngredients])
def list_products(
    name: Optional[str] = Query(None, description="Search by product name or ingredients (all words must match)"),
    db: Session = Depends(get_db),
):
    products = ProductRepository(db)
    if name and name.strip():
        return products.search(name)
    return products.find_all_with_ingredients()


# =========================
# POJEDYNCZY PRODUKT
# =========================
@router.get("/{product_id}", response_model=ProductWithIngredients)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_or_404(ProductRepository(db), product_id)


# =========================
# ZARZĄDZANIE (ADMIN)
# =========================
@router.post("", response_model=ProductWithIngredients, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    products = ProductRepository(db)
    product = products.records.create(payload.model_dump())

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"id": product.id, "name": product.name},
    )
    return _get_or_404(products, product.id)


@router.patch("/{product_id}", response_model=ProductWithIngredients)
def edit_product(
    product_id: int,
    payload: ProductPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    products = ProductRepository(db)
    # Only fields present in the request body are written
    if products.records.update(product_id, payload) is None:
        raise HTTPException(status_code=404, detail="Product not found")

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"id": product_id, "fields": sorted(payload.model_fields_set)},
    )
    return _get_or_404(products, product_id)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if not ProductRepository(db).records.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products", status="SUCCESS",
              ip=request.client.host if request.client else None, meta={"id": product_id})


# =========================
# SKŁADNIKI PRODUKTU
# =========================
@router.post("/{product_id}/ingredients/{ingredient_id}", response_model=ProductWithIngredients)
def link_ingredient(
    product_id: int,
    ingredient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    products = ProductRepository(db)
    if not products.records.exists(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    if not IngredientRepository(db).records.exists(ingredient_id):
        raise HTTPException(status_code=404, detail="Ingredient not found")

    # Linking twice is a no-op
    products.add_ingredient(product_id, ingredient_id)
    return _get_or_404(products, product_id)


@router.delete("/{product_id}/ingredients/{ingredient_id}", response_model=ProductWithIngredients)
def unlink_ingredient(
    product_id: int,
    ingredient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    products = ProductRepository(db)
    if not products.remove_ingredient(product_id, ingredient_id):
        raise HTTPException(status_code=404, detail="Ingredient is not part of this product")
    return _get_or_404(products, product_id)
