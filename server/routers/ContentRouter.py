from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import ContentRequest, PreviewRequest, RenderRequest
from server.models.responses import ClassifyResponse, PreviewResponse
from shared.content.ContentClassifier import classify
from shared.models.content import RenderedContent

router = APIRouter(prefix="/content", tags=["content"])


@router.post("/classify")
async def classify_content(body: ContentRequest, _: None = Depends(verify_api_key)) -> ClassifyResponse:
    """Detect the document type of raw content (html, csv, markdown or text)."""
    return ClassifyResponse(document_type=classify(body.content))


@router.post("/render")
async def render_content(request: Request, body: RenderRequest, _: None = Depends(verify_api_key)) -> RenderedContent:
    """Render unsaved content, e.g. for an editor preview. Without a type the content is classified first."""
    document_type = body.document_type or classify(body.content)
    return request.app.state.content_renderer.render(body.content, document_type)


@router.post("/preview")
async def preview_content(request: Request, body: PreviewRequest, _: None = Depends(verify_api_key)) -> PreviewResponse:
    document_type = body.document_type or classify(body.content)
    preview = request.app.state.content_renderer.render_preview(body.content, document_type, limit=body.limit)
    return PreviewResponse(preview=preview)
