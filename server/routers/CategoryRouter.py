from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import CreatedResponse, StatusResponse
from shared.models.category import Category, CategoryForm, CategoryUpdateForm

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(request: Request, _: None = Depends(verify_api_key)) -> list[Category]:
    """Return the cached categories ordered by name, with their document counts."""
    return request.app.state.category_store.categories


@router.post("", status_code=201)
async def create_category(request: Request, body: CategoryForm, _: None = Depends(verify_api_key)) -> CreatedResponse:
    """Create a category (admins only).

    Args:
        request (Request): FastAPI request (provides app.state.category_store).
        body (CategoryForm): JSON body with name and color.
        _ (None): Auth dependency result (unused).

    Returns:
        CreatedResponse: The id of the new category.
    """
    category_id = await request.app.state.category_store.create(body)
    return CreatedResponse(id=category_id)


@router.patch("/{category_id}")
async def update_category(request: Request, category_id: str, body: CategoryUpdateForm, _: None = Depends(verify_api_key)) -> StatusResponse:
    await request.app.state.category_store.update(category_id, body)
    return StatusResponse(status="updated", id=category_id)


@router.delete("/{category_id}")
async def delete_category(request: Request, category_id: str, _: None = Depends(verify_api_key)) -> StatusResponse:
    """Delete a category. Categories still holding documents are rejected."""
    await request.app.state.category_store.delete(category_id)
    return StatusResponse(status="deleted", id=category_id)
