# docstore/main.py
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from . import config
from .core import AddedOut, DocumentIn, DocumentOut, IdentityOut
from .database import DocumentStore
from .sdk import (
    add_document_logic, check_admin, delete_document_logic, get_document_logic,
    is_admin, list_documents_logic, put_document_logic, reset_all_logic,
    snapshot_events,
)


def create_app(db: Optional[DocumentStore] = None, admin_token: Optional[str] = None,
               keepalive: Optional[float] = None) -> FastAPI:
    app = FastAPI(title="lumiere docstore")
    app.state.db = db if db is not None else DocumentStore()
    app.state.admin_token = admin_token if admin_token is not None else config.ADMIN_TOKEN
    app.state.keepalive = keepalive if keepalive is not None else config.KEEPALIVE_SECONDS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # the catalog page is served from another origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_db() -> DocumentStore:
        return app.state.db

    def require_admin(authorization: Optional[str] = Header(None)) -> None:
        check_admin(authorization, app.state.admin_token)

    # ---------------------------
    # Identity
    # ---------------------------
    @app.get("/auth/me", response_model=IdentityOut)
    async def whoami(authorization: Optional[str] = Header(None)):
        return IdentityOut(is_admin=is_admin(authorization, app.state.admin_token))

    # ---------------------------
    # Collection endpoints
    # ---------------------------
    @app.get("/collections/{collection}")
    async def list_documents(collection: str, db: DocumentStore = Depends(get_db)):
        return await list_documents_logic(db, collection)

    @app.get("/collections/{collection}/stream")
    async def stream_documents(collection: str, request: Request, db: DocumentStore = Depends(get_db)):
        events = snapshot_events(db, collection, request.is_disconnected, keepalive=app.state.keepalive)
        return StreamingResponse(events, media_type="text/event-stream",
                                 headers={"Cache-Control": "no-cache"})

    @app.get("/collections/{collection}/{key}", response_model=DocumentOut)
    async def get_document(collection: str, key: str, db: DocumentStore = Depends(get_db)):
        return await get_document_logic(db, collection, key)

    @app.put("/collections/{collection}/{key}", response_model=DocumentOut, dependencies=[Depends(require_admin)])
    async def put_document(collection: str, key: str, payload: DocumentIn,
                           db: DocumentStore = Depends(get_db)):
        return await put_document_logic(db, collection, key, payload)

    @app.post("/collections/{collection}", status_code=201, response_model=AddedOut,
              dependencies=[Depends(require_admin)])
    async def add_document(collection: str, payload: DocumentIn, db: DocumentStore = Depends(get_db)):
        return await add_document_logic(db, collection, payload)

    @app.delete("/collections/{collection}/{key}", dependencies=[Depends(require_admin)])
    async def delete_document(collection: str, key: str, db: DocumentStore = Depends(get_db)):
        return await delete_document_logic(db, collection, key)

    # ---------------------------
    # Utility: reset (for tests/demo)
    # ---------------------------
    @app.post("/reset", dependencies=[Depends(require_admin)])
    async def reset_all(db: DocumentStore = Depends(get_db)):
        return await reset_all_logic(db)

    return app


app = create_app()
