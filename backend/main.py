# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import SessionLocal, init_db
from populate_db import ensure_roles

# Import routerów
from routes.auth import router as auth_router
from routes.products import router as products_router
from routes.ingredients import router as ingredients_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.admin import router as admin_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Inicjalizacja: schemat + role wymagane przy rejestracji
init_db()
with SessionLocal() as db:
    ensure_roles(db)

app = FastAPI(title="Shop API", version="1.0.0")

# CORS Configuration
# Lokalny frontend oraz opcjonalny adres z konfiguracji
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]

if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rejestracja routerów
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(ingredients_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(admin_router)

@app.get("/")
def read_root():
    return {"message": "Shop API działa!"}
