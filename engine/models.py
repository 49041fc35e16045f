"""Domain records and result types shared by the search and insight engines."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal[
    'text', 'textarea', 'number', 'date', 'boolean', 'url',
    'select', 'multiselect', 'tags', 'rating'
]
SortBy = Literal['relevance', 'date_desc', 'date_asc', 'rating_desc', 'rating_asc']
Period = Literal['7d', '30d', '90d', '1y', 'all']

# Any value json.loads can produce
JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


# --- Domain ---

class CategoryField(BaseModel):
    id: str
    category_id: str
    name: str
    label: str
    field_type: FieldType
    placeholder: Optional[str] = None
    options: Optional[Any] = None
    required: bool = False
    order_index: int = 0
    created_at: Optional[datetime] = None


class Category(BaseModel):
    id: str
    user_id: Optional[int] = None
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    is_template: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fields: List[CategoryField] = Field(default_factory=list)


class Item(BaseModel):
    id: str
    category_id: str
    user_id: Optional[int] = None
    data: Dict[str, JSONValue] = Field(default_factory=dict)
    cover_image_url: Optional[str] = None
    cover_image_path: Optional[str] = None
    api_source: Optional[str] = None
    api_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# --- Search ---

class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_ids: Optional[List[str]] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    rating_min: Optional[float] = None
    rating_max: Optional[float] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None
    sort_by: SortBy = 'relevance'


class SearchResult(BaseModel):
    item: Item
    category: Category
    matched_fields: List[str] = Field(default_factory=list)
    rank: int


class SearchResponse(BaseModel):
    results: List[SearchResult] = Field(default_factory=list)
    total_count: int = 0
    query: str
    filters: SearchFilters


class SearchSuggestion(BaseModel):
    text: str
    type: Literal['recent', 'popular', 'suggestion'] = 'recent'
    category_id: Optional[str] = None
    item_id: Optional[str] = None


# --- Analytics ---

class OverallStats(BaseModel):
    total_categories: int = 0
    total_items: int = 0
    categories_with_items: int = 0
    average_items_per_category: float = 0


class TimeSeriesPoint(BaseModel):
    date: str
    count: int


class CategoryDistribution(BaseModel):
    category_id: str
    category_name: str
    category_icon: str
    category_color: str
    count: int
    percentage: float


class RatingBucket(BaseModel):
    rating: int
    count: int


class Insight(BaseModel):
    type: Literal['stat', 'achievement', 'trend']
    icon: str
    title: str
    value: Union[int, str]
    description: str
    trend: Optional[Literal['up', 'down', 'neutral']] = None
    trend_value: Optional[float] = None


class AnalyticsData(BaseModel):
    overall_stats: OverallStats
    time_series: List[TimeSeriesPoint]
    category_distribution: List[CategoryDistribution]
    rating_distribution: List[RatingBucket]
    insights: List[Insight]
