import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.db.base import Base
from app.db.session import engine
from app.api.routes import router
from app.services.storage import PROOF_ROUTE, proof_dir

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Family Task Manager API", version="0.1.0")

@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")

# Register routes
app.include_router(router)
# proof photos, reachable through the public URL stored on the task
app.mount(PROOF_ROUTE, StaticFiles(directory=proof_dir()), name="proofs")
