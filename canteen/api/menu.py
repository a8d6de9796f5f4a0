"""Menu API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from canteen.core.dependencies import get_menu_service
from canteen.services.persistence.menu import MenuPersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


class MenuItemResponse(BaseModel):
    """Menu item response model."""
    id: int
    name: str
    description: Optional[str] = None
    price: int
    category: str
    is_veg: bool
    type: str
    available: bool

    class Config:
        from_attributes = True


class MenuResponse(BaseModel):
    """Menu response model."""
    items: List[MenuItemResponse]
    categories: List[str] = []


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(
    request: Request,
    category: Optional[str] = None,
    available_only: bool = False,
    menu_service: MenuPersistenceService = Depends(get_menu_service),
):
    """Get the menu, optionally narrowed to one category or to available items."""
    logger.info(
        f"[MENU] Request received - category: {category}, available_only: {available_only}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    items = await menu_service.list_menu_items(category=category, available_only=available_only)
    categories = list(dict.fromkeys(item.category for item in items))
    logger.info(f"[MENU] Menu loaded - {len(items)} items, {len(categories)} categories")

    return MenuResponse(
        items=[MenuItemResponse.model_validate(item) for item in items],
        categories=categories,
    )
