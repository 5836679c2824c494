from fastapi import APIRouter, Depends, Query, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import CreatedResponse, DocumentResponse, StatusResponse
from services.archive.DocumentFilter import ALL_CATEGORIES, filter_documents, group_by_category
from shared.models.content import RenderedContent
from shared.models.document import Document, DocumentForm, DocumentUpdateForm

router = APIRouter(prefix="/documents", tags=["documents"])


def _to_response(request: Request, document: Document, unlocked: bool = False) -> DocumentResponse:
    renderer = request.app.state.content_renderer
    preview = renderer.render_preview(document.content, document.document_type)
    return DocumentResponse.from_document(document, preview=preview, unlocked=unlocked)


@router.get("")
async def list_documents(
    request: Request,
    search: str = "",
    category: str = ALL_CATEGORIES,
    _: None = Depends(verify_api_key),
) -> list[DocumentResponse]:
    """List the cached documents newest first, filtered by search term and category.

    Args:
        request (Request): FastAPI request (provides app.state.document_store).
        search (str): Case-insensitive substring of title, content or author.
        category (str): Category name, or "all".
        _ (None): Auth dependency result (unused).

    Returns:
        list[DocumentResponse]: Matching documents. Locked documents come without content.
    """
    documents = filter_documents(request.app.state.document_store.documents, search, category)
    return [_to_response(request, document) for document in documents]


@router.get("/grouped")
async def list_documents_grouped(
    request: Request,
    search: str = "",
    _: None = Depends(verify_api_key),
) -> dict[str, list[DocumentResponse]]:
    """List matching documents grouped by category name."""
    documents = filter_documents(request.app.state.document_store.documents, search)
    return {
        name: [_to_response(request, document) for document in group]
        for name, group in group_by_category(documents).items()
    }


@router.get("/{document_id}")
async def get_document(
    request: Request,
    document_id: str,
    password: str | None = Query(default=None),
    _: None = Depends(verify_api_key),
) -> DocumentResponse:
    """Open a single document. Locked documents need their password."""
    document = request.app.state.document_store.open_document(document_id, password)
    return _to_response(request, document, unlocked=True)


@router.get("/{document_id}/render")
async def render_document(
    request: Request,
    document_id: str,
    password: str | None = Query(default=None),
    _: None = Depends(verify_api_key),
) -> RenderedContent:
    """Render the content of a document according to its type."""
    document = request.app.state.document_store.open_document(document_id, password)
    return request.app.state.content_renderer.render(document.content, document.document_type)


@router.post("", status_code=201)
async def create_document(request: Request, body: DocumentForm, _: None = Depends(verify_api_key)) -> CreatedResponse:
    document_id = await request.app.state.document_store.create(body)
    return CreatedResponse(id=document_id)


@router.patch("/{document_id}")
async def update_document(request: Request, document_id: str, body: DocumentUpdateForm, _: None = Depends(verify_api_key)) -> StatusResponse:
    """Update the fields present in the body (admins only)."""
    await request.app.state.document_store.update(document_id, body)
    return StatusResponse(status="updated", id=document_id)


@router.delete("/{document_id}")
async def delete_document(request: Request, document_id: str, _: None = Depends(verify_api_key)) -> StatusResponse:
    await request.app.state.document_store.delete(document_id)
    return StatusResponse(status="deleted", id=document_id)
