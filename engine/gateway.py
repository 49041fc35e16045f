"""Read-only data access for the engines, scoped to one owner.

Storage errors (sqlite3.Error) are not caught here; they reach the caller unchanged.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from db.categories import get_user_categories
from db.items import get_items, get_items_in
from engine.models import Category, Item


class DataGateway:

    def __init__(self, user_id: int):
        self.user_id = user_id

    async def list_owned_categories(self) -> List[Category]:
        return [Category.model_validate(row) for row in get_user_categories(self.user_id)]

    async def list_items(self, category_id: str) -> List[Item]:
        return [Item.model_validate(row) for row in get_items(category_id)]

    async def list_items_in(
        self,
        category_ids: Sequence[str],
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Item]:
        rows = get_items_in(list(category_ids), date_from=date_from, date_to=date_to)
        return [Item.model_validate(row) for row in rows]
