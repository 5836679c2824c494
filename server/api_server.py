"""FastAPI application entry point for the document archive."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.clients.identity.IdentityClientInterface import IdentityClientInterface
from shared.clients.backend.BackendClientManager import BackendClientManager
from shared.clients.identity.IdentityClientManager import IdentityClientManager
from shared.content.ContentRenderer import ContentRenderer
from shared.errors import (
    ArchiveError,
    BackendError,
    ConsistencyGapError,
    FormValidationError,
    IdentityError,
    NotFoundError,
    PermissionDeniedError,
    IDENTITY_DISABLED,
    IDENTITY_EMAIL_IN_USE,
    IDENTITY_INVALID_EMAIL,
    IDENTITY_TOO_MANY_ATTEMPTS,
    IDENTITY_WEAK_PASSWORD,
)
from services.archive.SessionAdapter import SessionAdapter
from services.archive.CategoryStore import CategoryStore
from services.archive.DocumentStore import DocumentStore
from server.routers.SessionRouter import router as session_router
from server.routers.CategoryRouter import router as category_router
from server.routers.DocumentRouter import router as document_router
from server.routers.ContentRouter import router as content_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")

# identity error codes that are not plain authentication failures
_IDENTITY_STATUS: dict[str, int] = {
    IDENTITY_EMAIL_IN_USE: 409,
    IDENTITY_TOO_MANY_ATTEMPTS: 429,
    IDENTITY_WEAK_PASSWORD: 422,
    IDENTITY_INVALID_EMAIL: 422,
    IDENTITY_DISABLED: 403,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    backend_client = BackendClientManager(helper_config=app.state.helper_config).get_client()
    identity_client = IdentityClientManager(helper_config=app.state.helper_config).get_client()

    logging.info("Booting all clients...")
    for client in [backend_client, identity_client]:
        await client.boot()
    logging.info("All clients booted successfully.")

    # backend requests carry the id token of the signed-in user
    backend_client.set_token_provider(identity_client.get_id_token)
    await check_connections(backend_client, identity_client)

    app.state.backend_client = backend_client
    app.state.identity_client = identity_client
    app.state.content_renderer = ContentRenderer(helper_config=app.state.helper_config)
    app.state.session = SessionAdapter(
        helper_config=app.state.helper_config,
        identity_client=identity_client,
        backend_client=backend_client,
    )
    app.state.category_store = CategoryStore(
        helper_config=app.state.helper_config,
        backend_client=backend_client,
        session=app.state.session,
    )
    app.state.document_store = DocumentStore(
        helper_config=app.state.helper_config,
        backend_client=backend_client,
        session=app.state.session,
        category_store=app.state.category_store,
    )

    await app.state.session.start()
    await app.state.category_store.load()
    app.state.category_store.subscribe()
    await app.state.document_store.start()
    logging.info("Archive session ready.", color="green")

    # while the app is running...
    yield

    # when the app shuts down, drop subscriptions and close all client connections
    logging.info("Shutting down, closing all clients...")
    await app.state.document_store.close()
    await app.state.category_store.close()
    await app.state.session.close()
    for client in [backend_client, identity_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="document_archive",
    description=(
        "Categorized archive of text, HTML, CSV and Markdown documents. "
        "Signed-in users browse, search and render documents; administrators "
        "manage documents and categories. Persistence and identity are delegated "
        "to the configured backend and identity engines."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_router)
app.include_router(category_router)
app.include_router(document_router)
app.include_router(content_router)


##########################################
############ ERROR MAPPING ###############
##########################################

def get_status_code(error: ArchiveError) -> int:
    """Map an archive error to its HTTP status code.

    Args:
        error (ArchiveError): The raised error.

    Returns:
        int: The status code of the error response.
    """
    if isinstance(error, PermissionDeniedError):
        return 403
    if isinstance(error, FormValidationError):
        return 422
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, IdentityError):
        return _IDENTITY_STATUS.get(error.code, 401)
    if isinstance(error, BackendError):
        return 502
    return 400


@app.exception_handler(ArchiveError)
async def handle_archive_error(request: Request, error: ArchiveError) -> JSONResponse:
    status_code = get_status_code(error)
    content: dict = {"detail": error.message}
    if isinstance(error, IdentityError):
        content["code"] = error.code
    if isinstance(error, ConsistencyGapError):
        content["document_id"] = error.document_id
    if status_code >= 500:
        logging.error("%s %s failed: %s", request.method, request.url.path, error.message)
    return JSONResponse(status_code=status_code, content=content)


async def check_connections(backend_client: BackendClientInterface, identity_client: IdentityClientInterface) -> None:
    """Check connectivity to the backend and the identity provider on startup.

    Both are non-fatal: the stores keep their error state and report it per request.
    """
    for client in [backend_client, identity_client]:
        try:
            result = await client.do_healthcheck()
        except Exception as e:
            logging.warning("Client '%s' is not reachable: %s", client.describe(), e)
            continue
        if not result.is_success:
            logging.warning("Client '%s' is not reachable (status %d).", client.describe(), result.status_code)
        else:
            logging.info("Client '%s' is reachable.", client.describe())


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting document archive API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
