from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from sqlalchemy.orm import Session

from .. import crud
from ..auth import get_current_admin
from ..database import get_db
from ..errors import http_error
from ..models import Profile
from ..schemas import CategoryOut, ProductDetailOut, ProductOut

router = APIRouter(prefix="/products", tags=["Catalog"])


@router.get("/", response_model=List[ProductOut])
def View_Products(
    search: Optional[str] = Query(None, description="**Search** in name or description", examples=[""]),
    category_id: Optional[int] = Query(None, gt=0, description="**Category** filter"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="**Minimum price**"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="**Maximum price**"),
    sort: str = Query("name", description="**Sort**: name, price-low, price-high, rating, newest"),
    skip: int = Query(0, ge=0, description="**Skip** number of products"),
    limit: int = Query(100, ge=1, le=1000, description="**Limit** number of products"),
    db: Session = Depends(get_db)
):
    try:
        return crud.get_products(
            db,
            search=search,
            category_id=category_id,
            min_price=min_price,
            max_price=max_price,
            sort=sort,
            skip=skip,
            limit=limit,
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/featured", response_model=List[ProductOut])
def View_Featured_Products(
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db)
):
    return crud.get_featured_products(db, limit=limit)


@router.get("/categories", response_model=List[CategoryOut])
def View_Categories(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return crud.get_categories(db, limit=limit)


@router.get("/{product_id:int}", response_model=ProductDetailOut)
def View_Product(
    product_id: int,
    db: Session = Depends(get_db)
):
    product = crud.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "product": product,
        "category": product.category,
        "related": crud.get_related_products(db, product),
    }


@router.post("/", response_model=ProductOut, status_code=201)
def Create_Product_Only_Admin(
    name: str = Form(..., description="**Product name** (required)", examples=[""]),
    description: str = Form("", description="**Description**", examples=[""]),
    price: Decimal = Form(..., gt=0, description="**Price** (must be greater than 0)", examples=[""]),
    stock_quantity: int = Form(..., ge=0, description="**Stock quantity** (must be >= 0)", examples=[""]),
    category_id: Optional[int] = Form(None, gt=0, description="**Category** (optional)", examples=[""]),
    weight: Optional[str] = Form(None, description="**Weight**, e.g. 500g (optional)", examples=[""]),
    is_featured: bool = Form(False, description="**Featured** on the home page"),
    is_active: bool = Form(True, description="**Active** (visible to shoppers)"),
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    product_data = {
        "name": name,
        "description": description,
        "price": price,
        "stock_quantity": stock_quantity,
        "category_id": category_id,
        "weight": weight,
        "is_featured": is_featured,
        "is_active": is_active,
    }
    try:
        return crud.create_product(db, product_data)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{product_id:int}", response_model=ProductOut)
def Update_Product_Only_Admin(
    product_id: int,
    name: Optional[str] = Form(None, description="**New name** (optional)", examples=[""]),
    description: Optional[str] = Form(None, description="**New description** (optional)", examples=[""]),
    price: Optional[Decimal] = Form(None, gt=0, description="**New price** (optional, > 0)", examples=[""]),
    stock_quantity: Optional[int] = Form(None, ge=0, description="**New stock** (optional, >= 0)", examples=[""]),
    category_id: Optional[int] = Form(None, gt=0, description="**New category** (optional)", examples=[""]),
    is_featured: Optional[bool] = Form(None, description="**Featured** (optional)"),
    is_active: Optional[bool] = Form(None, description="**Active** (optional)"),
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    update_data = {
        "name": name,
        "description": description,
        "price": price,
        "stock_quantity": stock_quantity,
        "category_id": category_id,
        "is_featured": is_featured,
        "is_active": is_active,
    }
    update_data = {k: v for k, v in update_data.items() if v is not None}

    try:
        product = crud.update_product(db, product_id, update_data)
    except ValueError as e:
        raise http_error(e)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
