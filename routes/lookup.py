from fastapi import APIRouter, HTTPException, Depends
from typing import List, Dict, Any
from dependencies import get_current_user
from integrations.google_books import BookData, BookLookupError, search_books, get_book_details

router = APIRouter(prefix="/api/lookup", tags=["lookup"])


@router.get("/books")
async def lookup_books(
    q: str,
    max_results: int = 10,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> List[BookData]:
    """Search Google Books to pre-fill a book item"""
    try:
        return await search_books(q, max_results=max_results)
    except BookLookupError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/books/{volume_id}")
async def lookup_book_details(
    volume_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> BookData:
    try:
        return await get_book_details(volume_id)
    except BookLookupError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Book not found")
        raise HTTPException(status_code=502, detail=e.message)
