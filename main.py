import os
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from bson import ObjectId
from fastapi import APIRouter, FastAPI, HTTPException, Depends, Path, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import PyMongoError

from auth import authenticate_user, build_password_context, create_access_token, decode_access_token, register_user
from config import Settings, configure_logging
from database import (
    connect,
    create_document,
    delete_document,
    ensure_indexes,
    get_document,
    get_documents,
    serialize_doc,
    update_document,
)
from errors import AppError, InternalError, ValidationError, violations_from
from listing import FIELD_PATTERN, list_products
from resolver import USER_PROJECTION, resolve_cart, resolve_carts, resolve_order, resolve_orders
from schemas import OBJECT_ID_PATTERN, Cart, LoginPayload, Order, OrderUpdate, Product, SignupPayload, Token, to_document

logger = structlog.get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

router = APIRouter()


# Dependencies: everything shared lives on app.state, set once by create_app

def get_db(request: Request) -> Database:
    return request.app.state.db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pwd_context(request: Request) -> CryptContext:
    return request.app.state.pwd_context


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token, settings)
    except JWTError:
        raise credentials_exception
    if user_id is None or not ObjectId.is_valid(user_id):
        raise credentials_exception

    user = db["user"].find_one({"_id": ObjectId(user_id)}, USER_PROJECTION)
    if not user:
        raise credentials_exception
    return serialize_doc(user)


def object_id_path(description: str):
    return Path(..., pattern=OBJECT_ID_PATTERN, description=description)


@router.get("/")
def root():
    return {"message": "Server Connected!"}


# Auth endpoints
@router.post("/auth/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupPayload, db: Database = Depends(get_db), pwd_context: CryptContext = Depends(get_pwd_context)):
    register_user(db, pwd_context, payload.username, payload.password)
    return {"message": "User registered successfully"}


@router.post("/auth/login", response_model=Token)
def login(
    payload: LoginPayload,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    pwd_context: CryptContext = Depends(get_pwd_context),
):
    user = authenticate_user(db, pwd_context, payload.username, payload.password)
    token = create_access_token(data={"sub": user["id"]}, settings=settings)
    return Token(token=token)


@router.get("/auth/me")
def me(user=Depends(get_current_user)):
    return user


# Products
@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(product: Product, db: Database = Depends(get_db)):
    return create_document(db, "product", product)


@router.get("/products")
def get_products(
    request: Request,
    filter: Optional[str] = Query(None, pattern=FIELD_PATTERN),
    sort: Optional[str] = Query(None, pattern=FIELD_PATTERN),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Database = Depends(get_db),
):
    # the filter value arrives under the filtered field's own name, e.g. ?filter=title&title=Dune
    value = request.query_params.get(filter) if filter else None
    return list_products(db, filter_field=filter, filter_value=value, sort=sort, order=order)


@router.get("/products/{product_id}")
def get_product(product_id: str = object_id_path("Product id"), db: Database = Depends(get_db)):
    return get_document(db, "product", product_id)


@router.put("/products/{product_id}")
def update_product(product: Product, product_id: str = object_id_path("Product id"), db: Database = Depends(get_db)):
    return update_document(db, "product", product_id, to_document(product))


@router.delete("/products/{product_id}")
def delete_product(product_id: str = object_id_path("Product id"), db: Database = Depends(get_db)):
    delete_document(db, "product", product_id)
    return {"message": "Product deleted successfully"}


# Orders
@router.post("/order", status_code=status.HTTP_201_CREATED)
def create_order(order: Order, db: Database = Depends(get_db)):
    return create_document(db, "order", order)


@router.get("/order")
def get_orders(db: Database = Depends(get_db)):
    return resolve_orders(db, get_documents(db, "order"))


@router.get("/order/{order_id}")
def get_order(order_id: str = object_id_path("Order id"), db: Database = Depends(get_db)):
    return resolve_order(db, get_document(db, "order", order_id))


@router.put("/order/{order_id}")
def update_order(payload: OrderUpdate, order_id: str = object_id_path("Order id"), db: Database = Depends(get_db)):
    return update_document(db, "order", order_id, to_document(payload))


@router.delete("/order/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: str = object_id_path("Order id"), db: Database = Depends(get_db)):
    delete_document(db, "order", order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Carts
@router.post("/cart", status_code=status.HTTP_201_CREATED)
def create_cart(cart: Cart, db: Database = Depends(get_db)):
    return create_document(db, "cart", cart)


@router.get("/cart")
def get_carts(db: Database = Depends(get_db)):
    return resolve_carts(db, get_documents(db, "cart"))


@router.get("/cart/{cart_id}")
def get_cart(cart_id: str = object_id_path("Cart id"), db: Database = Depends(get_db)):
    return resolve_cart(db, get_document(db, "cart", cart_id))


@router.put("/cart/{cart_id}")
def update_cart(cart: Cart, cart_id: str = object_id_path("Cart id"), db: Database = Depends(get_db)):
    return update_document(db, "cart", cart_id, to_document(cart))


@router.delete("/cart/{cart_id}")
def delete_cart(cart_id: str = object_id_path("Cart id"), db: Database = Depends(get_db)):
    delete_document(db, "cart", cart_id)
    return {"message": "Cart deleted successfully"}


# Simple health and db test
@router.get("/test")
def test_database(db: Database = Depends(get_db)):
    try:
        collections = db.list_collection_names()
        return {"backend": "ok", "db": "ok", "collections": collections}
    except PyMongoError as e:
        return {"backend": "ok", "db": f"error: {str(e)[:50]}"}


# Error mapping

async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return await app_error_handler(request, ValidationError(violations_from(exc.errors())))


async def store_error_handler(request: Request, exc: PyMongoError):
    # the caller only learns that something failed
    logger.error("store_error", path=request.url.path, error=str(exc))
    return await app_error_handler(request, InternalError())


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_indexes(app.state.db)
        yield

    app = FastAPI(title="Bookstore API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db if db is not None else connect(settings)
    app.state.pwd_context = build_password_context(settings.bcrypt_rounds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
