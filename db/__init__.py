from .connection import get_db_connection, init_db, new_id, utc_timestamp
from .users import (
    create_user, authenticate_user, get_user, create_session, validate_session,
    delete_session, user_exists, count_users
)
from .categories import (
    get_user_categories, get_templates, get_category, create_category,
    clone_template, update_category, delete_category, get_category_stats,
    get_fields_for_category, create_field, update_field, delete_field, reorder_fields
)
from .items import (
    get_items, get_items_in, get_item, create_item, update_item, delete_item
)
from .history import (
    get_recent_searches, set_recent_searches, clear_recent_searches
)
