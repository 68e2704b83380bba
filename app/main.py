import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.db.database import init_db, check_db_connection
from app.api.v1.routes.expenses import router as expenses_router
from app.api.v1.routes.settlements import router as settlements_router
from app.rabbitmq.producer import close_event_publisher
from app.rabbitmq.setup import init_rabbitmq

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    init_rabbitmq()
    yield
    close_event_publisher()
    logger.info("Outing expense service stopped")


app = FastAPI(
    title="Outing Expense Service",
    description="Splits outing expenses among attendees and settles debts between group members",
    version="1.0.0",
    lifespan=lifespan
)

# settle-up routes first so their fixed paths win over /expenses/{expense_id}
app.include_router(settlements_router)
app.include_router(expenses_router)


@app.get("/")
def read_root():
    return {"message": "Outing Expense Service API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    database_ok = check_db_connection()
    return {"status": "healthy" if database_ok else "degraded", "database": database_ok}
