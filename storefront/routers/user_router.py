from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud
from ..auth import create_access_token, get_current_user, get_password_hash, verify_password
from ..database import get_db
from ..errors import http_error
from ..models import Profile
from ..pricing import money
from ..schemas import DashboardOut, Token, UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(
    email: str = Form(..., description="**Valid email address**", examples=[""]),
    password: str = Form(..., min_length=8, description="**Password (minimum 8 characters)**", examples=[""]),
    full_name: Optional[str] = Form(None, description="**Full name** (optional)", examples=[""]),
    db: Session = Depends(get_db)
):
    try:
        profile = crud.create_profile(
            db,
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name,
        )
    except ValueError as e:
        raise http_error(e)
    return UserOut.model_validate(profile)


@router.post("/login", response_model=Token)
def login(
    email: str = Form(..., description="**Email you registered with**", examples=[""]),
    password: str = Form(..., description="**Password**", examples=[""]),
    db: Session = Depends(get_db)
):
    user = crud.get_profile_by_email(db, email=email)
    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def read_users_me(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserOut)
def update_profile(
    full_name: Optional[str] = Form(None, description="**Full name** (optional)", examples=[""]),
    phone: Optional[str] = Form(None, description="**Phone** (optional)", examples=[""]),
    address: Optional[str] = Form(None, description="**Address** (optional)", examples=[""]),
    city: Optional[str] = Form(None, description="**City** (optional)", examples=[""]),
    state: Optional[str] = Form(None, description="**State** (optional)", examples=[""]),
    pincode: Optional[str] = Form(None, description="**Pincode** (optional)", examples=[""]),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    update_data = {
        "full_name": full_name,
        "phone": phone,
        "address": address,
        "city": city,
        "state": state,
        "pincode": pincode,
    }
    profile = crud.update_profile(db, current_user.id, update_data)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


@router.get("/me/dashboard", response_model=DashboardOut)
def dashboard(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Profile, the five most recent orders and lifetime order stats."""
    orders = crud.get_orders_by_user(db, current_user.id, limit=None)

    return {
        "profile": current_user,
        "recent_orders": orders[:5],
        "total_orders": len(orders),
        "total_spent": money(sum((o.total_amount for o in orders), 0)),
        "completed_orders": sum(1 for o in orders if o.status == "delivered"),
    }
