from fastapi import HTTPException, Cookie, Depends
from db.users import validate_session, get_user
from engine import DataGateway, InsightEngine, RecentSearches, SearchEngine, SqliteHistoryStore
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

async def get_current_user(token: Optional[str] = Cookie(None, alias="session_token")) -> Dict[str, Any]:
    """Dependency to get current authenticated user"""
    if not token:
        logger.warning("Auth failed: No session token")
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = validate_session(token)
    if not user_id:
        logger.warning(f"Auth failed: Invalid session token (token={token[:10]}...)")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user = get_user(user_id)
    if not user:
        logger.error(f"Auth failed: User ID {user_id} from valid session not found in DB")
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def get_search_engine(current_user: Dict[str, Any] = Depends(get_current_user)) -> SearchEngine:
    """Search engine scoped to the current user, with their persisted search history"""
    history = RecentSearches(SqliteHistoryStore(current_user['id']))
    return SearchEngine(DataGateway(current_user['id']), history=history)

async def get_insight_engine(current_user: Dict[str, Any] = Depends(get_current_user)) -> InsightEngine:
    return InsightEngine(DataGateway(current_user['id']))
