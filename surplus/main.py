from dotenv import load_dotenv
load_dotenv()

import logging
import os
from urllib.parse import urlparse

# ============================
# DEV MODE
# ============================
if os.getenv("DEV_MODE", "0") == "1":
    os.environ.setdefault("ADMIN_TOKEN", "devtoken123")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from surplus.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("surplus")


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}_{route.name}" if route.tags else route.name


app = FastAPI(
    title="Surplus Food Reservation API",
    description="Discounted surplus food: store inventory and pickup reservations",
    version="1.0.0",
    generate_unique_id_function=custom_generate_unique_id,
)

logger.info("[BOOT] database = %s", settings.database_url.split("@")[-1])


# ============================
#  CORS
# ============================
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

if settings.frontend_url:
    origins.append(settings.frontend_url)

clean_origins = []
for url in origins:
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        clean_origins.append(f"{parsed.scheme}://{parsed.netloc}")
    else:
        clean_origins.append(url)

origins = list(sorted(set(clean_origins)))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)

# ============================
# Routers
# ============================
from surplus.reservations.api.reservations_api import router as reservations_router
from surplus.inventory.api.inventory_api import router as inventory_router
from surplus.stores.api.stores_api import router as stores_router
from surplus.notifications.api.notifications_api import router as notifications_router
from surplus.users.api.users_api import router as users_router
from surplus.notices.api.notices_api import router as notices_router
from surplus.admin.api.admin_api import router as admin_router

app.include_router(reservations_router)
app.include_router(inventory_router)
app.include_router(stores_router)
app.include_router(notifications_router)
app.include_router(users_router)
app.include_router(notices_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": "Surplus Food Reservation API is running"}


@app.get("/health")
def health():
    return {"status": "ok"}
