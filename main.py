import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from core.use_cases.user_use_cases import ensure_admin
from infrastructure.db.repositories import StoreUserRepository
from infrastructure.db.sqlite import SQLiteTableStore, connect, init_db
from infrastructure.web.controllers.admin_controller import router as admin_router
from infrastructure.web.controllers.auth_controller import router as auth_router
from infrastructure.web.controllers.automation_controller import router as automation_router
from infrastructure.web.controllers.chat_controller import router as chat_router
from infrastructure.web.controllers.onboarding_controller import router as onboarding_router
from infrastructure.web.controllers.payment_controller import router as payment_router
from infrastructure.web.controllers.wallet_controller import router as wallet_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="R1 AI business automation")

# от CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)


def bootstrap_admin(db_path: str) -> None:
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set, admin account %s not seeded", settings.ADMIN_EMAIL)
        return
    conn = connect(db_path)
    try:
        ensure_admin(StoreUserRepository(SQLiteTableStore(conn)), settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        conn.close()


@app.on_event("startup")
def on_startup():
    init_db(settings.DB_PATH)
    bootstrap_admin(settings.DB_PATH)


app.include_router(auth_router)
app.include_router(wallet_router)
app.include_router(onboarding_router)
app.include_router(automation_router)
app.include_router(payment_router)
app.include_router(admin_router)
app.include_router(chat_router)


@app.get("/health")
def health():
    return {"status": "ok"}
