import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from . import config, crud
from .auth import get_password_hash
from .database import SessionLocal, engine
from .models import Base
from .routers import cart_router, checkout_router, order_router, product_router, user_router, wishlist_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Organic Oasis Storefront",
    description="Catalog, cart, checkout and order history for the organic food store",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router.router)
app.include_router(product_router.router)
app.include_router(cart_router.router)
app.include_router(checkout_router.router)
app.include_router(order_router.router)
app.include_router(wishlist_router.router)


def init_admin_user():
    if not config.ADMIN_EMAIL:
        return

    db = SessionLocal()
    try:
        admin_user = crud.get_profile_by_email(db, config.ADMIN_EMAIL)
        if not admin_user:
            crud.create_profile(
                db,
                email=config.ADMIN_EMAIL,
                hashed_password=get_password_hash(config.ADMIN_PASSWORD),
                full_name="Administrator",
                is_admin=True,
            )
            logger.info("Admin user %s created", config.ADMIN_EMAIL)
        elif not admin_user.is_admin:
            admin_user.is_admin = True
            db.commit()
            logger.info("Admin user %s updated", config.ADMIN_EMAIL)
    except SQLAlchemyError:
        logger.exception("Error initializing admin user")
        db.rollback()
    finally:
        db.close()


@app.on_event("startup")
def startup_event() -> None:
    Base.metadata.create_all(bind=engine)
    init_admin_user()


@app.get("/")
def root():
    return {
        "service": "Organic Oasis Storefront",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "storefront"
    }
