import sqlite3
import json
from typing import Optional, Dict, Any, List
from .connection import get_db_connection, new_id, utc_timestamp

FIELD_TYPES = (
    'text', 'textarea', 'number', 'date', 'boolean', 'url',
    'select', 'multiselect', 'tags', 'rating'
)


def _field_from_row(row: sqlite3.Row) -> Dict[str, Any]:
    field = dict(row)
    field['required'] = bool(field['required'])
    if field.get('options'):
        try:
            field['options'] = json.loads(field['options'])
        except (json.JSONDecodeError, TypeError):
            field['options'] = None
    return field


def _category_from_row(row: sqlite3.Row, fields: List[Dict[str, Any]]) -> Dict[str, Any]:
    category = dict(row)
    category['is_template'] = bool(category['is_template'])
    category['fields'] = fields
    return category


def _attach_fields(conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[Dict[str, Any]]:
    """Load fields for a batch of category rows, ordered by order_index then insertion."""
    if not rows:
        return []
    ids = [row['id'] for row in rows]
    placeholders = ','.join(['?'] * len(ids))
    field_rows = conn.execute(
        f'''SELECT * FROM category_fields
            WHERE category_id IN ({placeholders})
            ORDER BY order_index, rowid''',
        ids
    ).fetchall()

    by_category: Dict[str, List[Dict[str, Any]]] = {category_id: [] for category_id in ids}
    for field_row in field_rows:
        by_category[field_row['category_id']].append(_field_from_row(field_row))

    return [_category_from_row(row, by_category[row['id']]) for row in rows]


def get_user_categories(user_id: int) -> List[Dict[str, Any]]:
    """Get the user's own categories (not templates), newest first"""
    conn = get_db_connection()
    try:
        rows = conn.execute(
            '''SELECT * FROM categories
               WHERE user_id = ? AND is_template = 0
               ORDER BY created_at DESC, rowid DESC''',
            (user_id,)
        ).fetchall()
        return _attach_fields(conn, rows)
    finally:
        conn.close()


def get_templates() -> List[Dict[str, Any]]:
    """Get system templates that users can clone"""
    conn = get_db_connection()
    try:
        rows = conn.execute(
            'SELECT * FROM categories WHERE is_template = 1 ORDER BY name'
        ).fetchall()
        return _attach_fields(conn, rows)
    finally:
        conn.close()


def get_category(category_id: str, user_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """Get a category by ID.

    If user_id is provided, returns the category only if the user owns it or it's a template.
    """
    conn = get_db_connection()
    try:
        if user_id is None:
            row = conn.execute('SELECT * FROM categories WHERE id = ?', (category_id,)).fetchone()
        else:
            row = conn.execute(
                'SELECT * FROM categories WHERE id = ? AND (user_id = ? OR is_template = 1)',
                (category_id, user_id)
            ).fetchone()
        if not row:
            return None
        return _attach_fields(conn, [row])[0]
    finally:
        conn.close()


def create_category(
    user_id: int,
    name: str,
    icon: Optional[str] = None,
    color: Optional[str] = None,
    description: Optional[str] = None,
    fields: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Create a category owned by user_id, with optional field definitions"""
    category_id = new_id()
    now = utc_timestamp()
    conn = get_db_connection()
    try:
        conn.execute(
            '''INSERT INTO categories (id, user_id, name, icon, color, description, is_template, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?)''',
            (category_id, user_id, name, icon, color, description, now, now)
        )
        for field in fields or []:
            _insert_field(conn, category_id, **field)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
    return get_category(category_id)


def clone_template(template_id: str, user_id: int, custom_name: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Copy a template (and its fields) into a category owned by user_id"""
    template = get_category(template_id)
    if template is None or not template['is_template']:
        return None

    fields = [
        {
            'name': f['name'],
            'label': f['label'],
            'field_type': f['field_type'],
            'placeholder': f.get('placeholder'),
            'options': f.get('options'),
            'required': f['required'],
            'order_index': f['order_index'],
        }
        for f in template['fields']
    ]
    return create_category(
        user_id,
        custom_name or template['name'],
        icon=template.get('icon'),
        color=template.get('color'),
        description=template.get('description'),
        fields=fields,
    )


def update_category(category_id: str, user_id: int, **kwargs) -> bool:
    """Update category fields.

    Available kwargs: name, icon, color, description
    Returns True if updated, False if not found or not owned.
    """
    allowed_fields = {'name', 'icon', 'color', 'description'}
    updates = {k: v for k, v in kwargs.items() if k in allowed_fields}
    if not updates:
        return False

    set_clause = ', '.join([f'{k} = ?' for k in updates.keys()])
    values = list(updates.values()) + [utc_timestamp(), category_id, user_id]

    conn = get_db_connection()
    try:
        cursor = conn.execute(
            f'''UPDATE categories SET {set_clause}, updated_at = ?
                WHERE id = ? AND user_id = ? AND is_template = 0''',
            values
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()


def delete_category(category_id: str, user_id: int) -> bool:
    """Delete a category and cascade delete its items and fields."""
    conn = get_db_connection()
    try:
        owned = conn.execute(
            'SELECT 1 FROM categories WHERE id = ? AND user_id = ? AND is_template = 0',
            (category_id, user_id)
        ).fetchone()
        if not owned:
            return False
        conn.execute('DELETE FROM category_items WHERE category_id = ?', (category_id,))
        conn.execute('DELETE FROM category_fields WHERE category_id = ?', (category_id,))
        conn.execute('DELETE FROM categories WHERE id = ?', (category_id,))
        conn.commit()
        return True
    finally:
        conn.close()


def get_category_stats(category_id: str) -> Dict[str, int]:
    conn = get_db_connection()
    count = conn.execute(
        'SELECT COUNT(*) as cnt FROM category_items WHERE category_id = ?',
        (category_id,)
    ).fetchone()['cnt']
    conn.close()
    return {'total_items': count}


# --- Field definitions ---

def _insert_field(
    conn: sqlite3.Connection,
    category_id: str,
    name: str,
    label: str,
    field_type: str,
    placeholder: Optional[str] = None,
    options: Any = None,
    required: bool = False,
    order_index: int = 0,
) -> str:
    field_id = new_id()
    conn.execute(
        '''INSERT INTO category_fields (id, category_id, name, label, field_type, placeholder, options, required, order_index, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)''',
        (field_id, category_id, name, label, field_type, placeholder,
         json.dumps(options) if options is not None else None,
         1 if required else 0, order_index, utc_timestamp())
    )
    return field_id


def get_fields_for_category(category_id: str) -> List[Dict[str, Any]]:
    conn = get_db_connection()
    rows = conn.execute(
        'SELECT * FROM category_fields WHERE category_id = ? ORDER BY order_index, rowid',
        (category_id,)
    ).fetchall()
    conn.close()
    return [_field_from_row(row) for row in rows]


def create_field(category_id: str, **field: Any) -> Optional[Dict[str, Any]]:
    """Add a field to a category.

    Returns the new field, or None if the field type is not supported.
    """
    conn = get_db_connection()
    try:
        field_id = _insert_field(conn, category_id, **field)
        conn.commit()
        row = conn.execute('SELECT * FROM category_fields WHERE id = ?', (field_id,)).fetchone()
        return _field_from_row(row)
    except sqlite3.IntegrityError:
        conn.rollback()
        return None
    finally:
        conn.close()


def update_field(field_id: str, category_id: str, **kwargs) -> bool:
    """Update a field definition.

    Available kwargs: name, label, field_type, placeholder, options, required, order_index
    """
    allowed_fields = {'name', 'label', 'field_type', 'placeholder', 'options', 'required', 'order_index'}
    updates = {}
    for key, value in kwargs.items():
        if key not in allowed_fields:
            continue
        if key == 'options':
            value = json.dumps(value) if value is not None else None
        elif key == 'required':
            value = 1 if value else 0
        updates[key] = value

    if not updates:
        return False

    set_clause = ', '.join([f'{k} = ?' for k in updates.keys()])
    conn = get_db_connection()
    try:
        cursor = conn.execute(
            f'UPDATE category_fields SET {set_clause} WHERE id = ? AND category_id = ?',
            list(updates.values()) + [field_id, category_id]
        )
        conn.commit()
        return cursor.rowcount > 0
    except sqlite3.IntegrityError:
        conn.rollback()
        return False
    finally:
        conn.close()


def delete_field(field_id: str, category_id: str) -> bool:
    conn = get_db_connection()
    try:
        cursor = conn.execute(
            'DELETE FROM category_fields WHERE id = ? AND category_id = ?',
            (field_id, category_id)
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()


def reorder_fields(category_id: str, field_ids_ordered: List[str]) -> bool:
    """Reorder fields by providing the ordered list of field IDs.

    Positions start at 1. Returns True if reordered, False on error.
    """
    if not field_ids_ordered:
        return False

    conn = get_db_connection()
    try:
        for position, field_id in enumerate(field_ids_ordered, start=1):
            conn.execute(
                'UPDATE category_fields SET order_index = ? WHERE id = ? AND category_id = ?',
                (position, field_id, category_id)
            )
        conn.commit()
        return True
    except sqlite3.Error:
        conn.rollback()
        return False
    finally:
        conn.close()
