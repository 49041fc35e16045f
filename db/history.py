import json
from typing import List
from .connection import get_db_connection


def get_recent_searches(user_id: int) -> List[str]:
    """Get the stored recent-search list for a user (most recent first).

    Raises json.JSONDecodeError if the stored payload is corrupt.
    """
    conn = get_db_connection()
    row = conn.execute(
        'SELECT queries FROM search_history WHERE user_id = ?',
        (user_id,)
    ).fetchone()
    conn.close()
    if not row:
        return []
    return json.loads(row['queries'])


def set_recent_searches(user_id: int, queries: List[str]) -> None:
    conn = get_db_connection()
    try:
        conn.execute(
            '''INSERT OR REPLACE INTO search_history (user_id, queries, updated_at)
               VALUES (?, ?, CURRENT_TIMESTAMP)''',
            (user_id, json.dumps(queries, ensure_ascii=False))
        )
        conn.commit()
    finally:
        conn.close()


def clear_recent_searches(user_id: int) -> None:
    conn = get_db_connection()
    conn.execute('DELETE FROM search_history WHERE user_id = ?', (user_id,))
    conn.commit()
    conn.close()
