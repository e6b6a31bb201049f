import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from app_config import get_settings
from app_errors import InvalidRequest, PrimaryNotFound, StoreError
from app_logging import setup_logging
from contact_store import ContactStore
from db_models import AddContactRequest, FinalResponse, IdentifyRequest
from db_setup import init_db
from identity_resolver import IdentityResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    init_db(get_settings().database_path)
    yield


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)


def get_contact_store() -> ContactStore:
    return ContactStore(get_settings().database_path)


def get_identity_resolver(store: ContactStore = Depends(get_contact_store)) -> IdentityResolver:
    return IdentityResolver(store, merge_policy=get_settings().merge_policy)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(_: Request, exc: InvalidRequest):
    logger.warning("Rejected identify request: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(PrimaryNotFound)
async def primary_not_found_handler(_: Request, exc: PrimaryNotFound):
    logger.error("Broken contact chain: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(_: Request, exc: StoreError):
    logger.error("Contact store error: %r", exc.__cause__ or exc)
    return JSONResponse(status_code=503, content={"detail": "Contact store error"})


@app.get("/")
async def root():
    return {"message": "Bitespeed API is up"}


@app.post("/identify", response_model=FinalResponse)
def identify(request: IdentifyRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    return resolver.identify(request.email, request.phoneNumber)


@app.post("/add-contact")
def add_contact(request: AddContactRequest, store: ContactStore = Depends(get_contact_store)):
    """Add a new contact to the database with all fields"""
    contact = store.insert(
        email=request.email,
        phoneNumber=request.phoneNumber,
        linkPrecedence=request.linkPrecedence,
        linkedId=request.linkedId,
        contact_id=request.id,
    )
    return {"message": "Contact added successfully", "contact_id": contact.id}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
