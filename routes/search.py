from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import List, Dict
from dependencies import get_search_engine
from engine import SearchEngine
from engine.models import SearchFilters, SearchResponse, SearchResult, SearchSuggestion

router = APIRouter(prefix="/api/search", tags=["search"])


class SearchRequest(BaseModel):
    query: str
    filters: SearchFilters = SearchFilters()


@router.post("")
async def search(
    data: SearchRequest,
    engine: SearchEngine = Depends(get_search_engine)
) -> SearchResponse:
    """Search across all of the current user's categories"""
    return await engine.search(data.query, data.filters)


@router.post("/category/{category_id}")
async def search_category(
    category_id: str,
    data: SearchRequest,
    engine: SearchEngine = Depends(get_search_engine)
) -> List[SearchResult]:
    """Search within a single category"""
    return await engine.search_by_category(category_id, data.query, data.filters)


@router.get("/suggestions")
async def get_suggestions(
    q: str = "",
    engine: SearchEngine = Depends(get_search_engine)
) -> List[SearchSuggestion]:
    return engine.suggest(q)


@router.get("/recent")
async def get_recent_searches(engine: SearchEngine = Depends(get_search_engine)) -> List[str]:
    return engine.recent_searches()


@router.delete("/recent")
async def clear_recent_searches(engine: SearchEngine = Depends(get_search_engine)) -> Dict[str, str]:
    engine.clear_recent_searches()
    return {"message": "Recent searches cleared"}
