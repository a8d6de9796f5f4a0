"""Menu persistence service."""
from typing import Iterable, List, Optional

from sqlalchemy import func, select

from canteen.db.models import MenuItem
from canteen.services.persistence.base import PersistenceService


class MenuPersistenceService(PersistenceService):
    """Read access to menu items."""

    async def list_menu_items(
        self, category: Optional[str] = None, available_only: bool = False
    ) -> List[MenuItem]:
        """List menu items grouped by category."""
        query = select(MenuItem)
        if category:
            query = query.where(MenuItem.category == category)
        if available_only:
            query = query.where(MenuItem.available.is_(True))
        query = query.order_by(MenuItem.category, MenuItem.name)

        result = await self._io(self.db.execute(query), "load menu items")
        return list(result.scalars().all())

    async def get_menu_item(self, item_id: int) -> Optional[MenuItem]:
        result = await self._io(
            self.db.execute(select(MenuItem).where(MenuItem.id == item_id)),
            "load menu item",
        )
        return result.scalar_one_or_none()

    async def get_menu_items(self, item_ids: Iterable[int]) -> dict[int, MenuItem]:
        """Get menu items keyed by id; unknown ids are absent."""
        ids = set(item_ids)
        if not ids:
            return {}
        result = await self._io(
            self.db.execute(select(MenuItem).where(MenuItem.id.in_(ids))),
            "load menu items",
        )
        return {item.id: item for item in result.scalars().all()}

    async def count_menu_items(self) -> int:
        result = await self._io(
            self.db.execute(select(func.count(MenuItem.id))), "count menu items"
        )
        return result.scalar() or 0

    async def add_menu_items(self, items: List[MenuItem]) -> List[MenuItem]:
        """Insert menu items in one commit."""
        self.db.add_all(items)
        await self._io(self.db.commit(), "create menu items")
        return items
