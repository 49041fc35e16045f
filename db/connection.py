import sqlite3
import json
import uuid
from datetime import datetime, timezone
from config import DB_PATH

# Schema version for migration tracking
SCHEMA_VERSION = 2

def get_db_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    # Ensure WAL mode is active for this connection
    conn.execute('PRAGMA journal_mode=WAL')
    conn.execute('PRAGMA foreign_keys=ON')
    return conn

def new_id() -> str:
    return uuid.uuid4().hex

def utc_timestamp(value: datetime = None) -> str:
    """Timestamps are stored as UTC ISO-8601 text so they sort and compare lexically."""
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')

# System templates users can clone into their own categories.
# Fields are (name, label, field_type, required, options)
TEMPLATES = [
    {
        'name': 'Books',
        'icon': '📚',
        'color': '#60a5fa',
        'description': 'Track the books you read',
        'fields': [
            ('title', 'Title', 'text', True, None),
            ('author', 'Author', 'text', False, None),
            ('status', 'Status', 'select', False, ['Want to Read', 'Reading', 'Completed', 'Dropped']),
            ('rating', 'Rating', 'rating', False, {'max': 5}),
            ('pages', 'Pages', 'number', False, None),
            ('tags', 'Tags', 'tags', False, None),
            ('notes', 'Notes', 'textarea', False, None),
        ],
    },
    {
        'name': 'Manga',
        'icon': '📖',
        'color': '#f472b6',
        'description': 'Track manga series and chapters',
        'fields': [
            ('title', 'Title', 'text', True, None),
            ('author', 'Author', 'text', False, None),
            ('status', 'Status', 'select', False, ['Plan to Read', 'Reading', 'Completed', 'On Hold', 'Dropped']),
            ('chapters_read', 'Chapters Read', 'number', False, None),
            ('rating', 'Rating', 'rating', False, {'max': 5}),
            ('tags', 'Tags', 'tags', False, None),
        ],
    },
    {
        'name': 'Anime',
        'icon': '🎌',
        'color': '#a78bfa',
        'description': 'Track anime you watch',
        'fields': [
            ('title', 'Title', 'text', True, None),
            ('studio', 'Studio', 'text', False, None),
            ('status', 'Status', 'select', False, ['Plan to Watch', 'Watching', 'Completed', 'On Hold', 'Dropped']),
            ('episodes_watched', 'Episodes Watched', 'number', False, None),
            ('rating', 'Rating', 'rating', False, {'max': 5}),
            ('tags', 'Tags', 'tags', False, None),
        ],
    },
    {
        'name': 'Movies',
        'icon': '🎬',
        'color': '#f59e0b',
        'description': 'Track movies you have seen',
        'fields': [
            ('title', 'Title', 'text', True, None),
            ('director', 'Director', 'text', False, None),
            ('release_year', 'Release Year', 'number', False, None),
            ('watched_on', 'Watched On', 'date', False, None),
            ('rating', 'Rating', 'rating', False, {'max': 5}),
            ('tags', 'Tags', 'tags', False, None),
        ],
    },
]

def init_db() -> None:
    conn = get_db_connection()

    # Enable WAL mode for better concurrency
    conn.execute('PRAGMA journal_mode=WAL')

    # Users table
    conn.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            email TEXT,
            role TEXT DEFAULT 'user' CHECK(role IN ('admin', 'user')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_login TIMESTAMP
        )
    ''')

    # Sessions table
    conn.execute('''
        CREATE TABLE IF NOT EXISTS sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            token TEXT UNIQUE NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            expires_at TIMESTAMP NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    ''')

    # Categories (templates have no owner)
    conn.execute('''
        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            user_id INTEGER,
            name TEXT NOT NULL,
            icon TEXT,
            color TEXT,
            description TEXT,
            is_template BOOLEAN DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    ''')

    # Dynamic field schema per category
    conn.execute('''
        CREATE TABLE IF NOT EXISTS category_fields (
            id TEXT PRIMARY KEY,
            category_id TEXT NOT NULL,
            name TEXT NOT NULL,
            label TEXT NOT NULL,
            field_type TEXT NOT NULL CHECK(field_type IN (
                'text', 'textarea', 'number', 'date', 'boolean', 'url',
                'select', 'multiselect', 'tags', 'rating'
            )),
            placeholder TEXT,
            options TEXT,
            required BOOLEAN DEFAULT 0,
            order_index INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE
        )
    ''')

    # Items with a schemaless JSON payload
    conn.execute('''
        CREATE TABLE IF NOT EXISTS category_items (
            id TEXT PRIMARY KEY,
            category_id TEXT NOT NULL,
            user_id INTEGER NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            cover_image_url TEXT,
            cover_image_path TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    ''')

    current_version = conn.execute('PRAGMA user_version').fetchone()[0]

    if current_version < 2:
        # Migration 2: Add API source columns to category_items
        for col in ('api_source', 'api_id'):
            try:
                conn.execute(f'ALTER TABLE category_items ADD COLUMN {col} TEXT')
            except sqlite3.OperationalError:
                pass  # Column already exists

    # Recent search history (one JSON list per user)
    conn.execute('''
        CREATE TABLE IF NOT EXISTS search_history (
            user_id INTEGER PRIMARY KEY,
            queries TEXT NOT NULL DEFAULT '[]',
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    ''')

    conn.execute('CREATE INDEX IF NOT EXISTS idx_categories_user ON categories(user_id, is_template)')
    conn.execute('CREATE INDEX IF NOT EXISTS idx_fields_category ON category_fields(category_id, order_index)')
    conn.execute('CREATE INDEX IF NOT EXISTS idx_items_category ON category_items(category_id, created_at)')

    seed_templates(conn)

    conn.execute(f'PRAGMA user_version = {SCHEMA_VERSION}')
    conn.commit()
    conn.close()

def seed_templates(conn: sqlite3.Connection) -> None:
    """Insert the system templates once"""
    existing = conn.execute('SELECT COUNT(*) FROM categories WHERE is_template = 1').fetchone()[0]
    if existing:
        return

    now = utc_timestamp()
    for template in TEMPLATES:
        category_id = new_id()
        conn.execute(
            '''INSERT INTO categories (id, user_id, name, icon, color, description, is_template, created_at, updated_at)
               VALUES (?, NULL, ?, ?, ?, ?, 1, ?, ?)''',
            (category_id, template['name'], template['icon'], template['color'],
             template['description'], now, now)
        )
        for index, (name, label, field_type, required, options) in enumerate(template['fields'], start=1):
            conn.execute(
                '''INSERT INTO category_fields (id, category_id, name, label, field_type, options, required, order_index, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)''',
                (new_id(), category_id, name, label, field_type,
                 json.dumps(options) if options is not None else None,
                 1 if required else 0, index, now)
            )
