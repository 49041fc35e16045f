from .gateway import DataGateway
from .history import HistoryStore, MemoryHistoryStore, SqliteHistoryStore, RecentSearches
from .search import SearchEngine
from .analytics import InsightEngine, calculate_streak
