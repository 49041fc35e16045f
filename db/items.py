import sqlite3
import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List
from .connection import get_db_connection, new_id, utc_timestamp

logger = logging.getLogger(__name__)


def _item_from_row(row: sqlite3.Row) -> Dict[str, Any]:
    item = dict(row)
    try:
        data = json.loads(item['data']) if item['data'] else {}
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Item {item['id']} has unreadable data, treating it as empty")
        data = {}
    item['data'] = data if isinstance(data, dict) else {}
    return item


def get_items(category_id: str) -> List[Dict[str, Any]]:
    """Get all items for a category, newest first"""
    conn = get_db_connection()
    rows = conn.execute(
        '''SELECT * FROM category_items
           WHERE category_id = ?
           ORDER BY created_at DESC, rowid DESC''',
        (category_id,)
    ).fetchall()
    conn.close()
    return [_item_from_row(row) for row in rows]


def get_items_in(
    category_ids: List[str],
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Get items belonging to any of category_ids, optionally bounded by created_at (inclusive)."""
    if not category_ids:
        return []

    placeholders = ','.join(['?'] * len(category_ids))
    clauses = [f'category_id IN ({placeholders})']
    params: List[Any] = list(category_ids)

    if date_from is not None:
        clauses.append('created_at >= ?')
        params.append(utc_timestamp(date_from))
    if date_to is not None:
        clauses.append('created_at <= ?')
        params.append(utc_timestamp(date_to))

    conn = get_db_connection()
    rows = conn.execute(
        f'''SELECT * FROM category_items
            WHERE {' AND '.join(clauses)}
            ORDER BY created_at DESC, rowid DESC''',
        params
    ).fetchall()
    conn.close()
    return [_item_from_row(row) for row in rows]


def get_item(item_id: str, user_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
    conn = get_db_connection()
    if user_id is None:
        row = conn.execute('SELECT * FROM category_items WHERE id = ?', (item_id,)).fetchone()
    else:
        row = conn.execute(
            'SELECT * FROM category_items WHERE id = ? AND user_id = ?',
            (item_id, user_id)
        ).fetchone()
    conn.close()
    return _item_from_row(row) if row else None


def create_item(
    category_id: str,
    user_id: int,
    data: Dict[str, Any],
    cover_image_url: Optional[str] = None,
    cover_image_path: Optional[str] = None,
    api_source: Optional[str] = None,
    api_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Create a new item in a category"""
    item_id = new_id()
    created = utc_timestamp(created_at)
    conn = get_db_connection()
    try:
        conn.execute(
            '''INSERT INTO category_items
               (id, category_id, user_id, data, cover_image_url, cover_image_path, api_source, api_id, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)''',
            (item_id, category_id, user_id, json.dumps(data, ensure_ascii=False),
             cover_image_url, cover_image_path, api_source, api_id, created, created)
        )
        conn.commit()
    finally:
        conn.close()
    return get_item(item_id)


def update_item(item_id: str, user_id: int, **kwargs) -> bool:
    """Update an item.

    Available kwargs: data, cover_image_url, cover_image_path, api_source, api_id
    Returns True if updated, False if not found or not owned.
    """
    allowed_fields = {'data', 'cover_image_url', 'cover_image_path', 'api_source', 'api_id'}
    updates = {}
    for key, value in kwargs.items():
        if key not in allowed_fields:
            continue
        if key == 'data':
            value = json.dumps(value or {}, ensure_ascii=False)
        updates[key] = value

    if not updates:
        return False

    set_clause = ', '.join([f'{k} = ?' for k in updates.keys()])
    values = list(updates.values()) + [utc_timestamp(), item_id, user_id]

    conn = get_db_connection()
    try:
        cursor = conn.execute(
            f'UPDATE category_items SET {set_clause}, updated_at = ? WHERE id = ? AND user_id = ?',
            values
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()


def delete_item(item_id: str, user_id: int) -> bool:
    conn = get_db_connection()
    try:
        cursor = conn.execute(
            'DELETE FROM category_items WHERE id = ? AND user_id = ?',
            (item_id, user_id)
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()
