"""Tests for the search engine."""

import sqlite3
from datetime import timedelta

import pytest

from conftest import NOW, FakeGateway, make_category, make_item
from engine.history import MemoryHistoryStore, RecentSearches
from engine.models import SearchFilters
from engine.search import SearchEngine, score_item, tokenize


def build_engine(categories, items, history=None, error=None):
    gateway = FakeGateway(categories, items, error=error)
    history = history if history is not None else RecentSearches(MemoryHistoryStore())
    return SearchEngine(gateway, history=history), gateway


@pytest.fixture
def library():
    books = make_category('books', 'Books', icon='📚')
    anime = make_category('anime', 'Anime')
    items = [
        make_item('dune', 'books', {'title': 'Dune', 'author': 'Frank Herbert', 'rating': 5,
                                    'status': 'Completed', 'tags': ['scifi', 'classic']},
                  created_at=NOW - timedelta(days=3)),
        make_item('foundation', 'books', {'title': 'Foundation', 'author': 'Isaac Asimov', 'rating': 3,
                                          'status': 'Reading', 'tags': ['scifi']},
                  created_at=NOW - timedelta(days=1)),
        make_item('frieren', 'anime', {'name': 'Frieren', 'notes': 'slow fantasy, like dune in tone',
                                       'status': 'Watching'},
                  created_at=NOW - timedelta(days=2)),
    ]
    return [books, anime], items


class TestTokenize:

    def test_splits_on_whitespace_and_lowercases(self):
        assert tokenize("  Dune   MESSIAH\tfrank ") == ['dune', 'messiah', 'frank']

    def test_duplicate_tokens_collapse(self):
        assert tokenize("dune Dune dune") == ['dune']

    def test_blank_query_has_no_tokens(self):
        assert tokenize("   ") == []


class TestScoring:

    def test_title_match_gets_bonus(self):
        item = make_item('1', 'books', {'title': 'Dune', 'rating': 5})
        rank, fields = score_item(item, ['dune'])
        assert rank == 3
        assert fields == ['title']

    def test_one_point_per_distinct_token(self):
        item = make_item('1', 'books', {'author': 'Frank Herbert'})
        rank, fields = score_item(item, ['frank', 'herbert', 'asimov'])
        assert rank == 2
        assert fields == ['author']

    def test_no_match_scores_zero(self):
        item = make_item('1', 'books', {'title': 'Dune'})
        assert score_item(item, ['gundam']) == (0, [])

    def test_bonus_counted_per_title_like_field(self):
        item = make_item('1', 'books', {'title': 'Dune', 'name': 'Dune', 'item_name': 'dune book'})
        rank, fields = score_item(item, ['dune'])
        assert rank == 1 + 3 * 2
        assert fields == ['title', 'name', 'item_name']

    def test_falsy_title_earns_no_bonus(self):
        item = make_item('1', 'books', {'title': False, 'name': 0, 'notes': 'false 0'})
        rank, fields = score_item(item, ['false', '0'])
        assert rank == 2
        assert fields == ['title', 'notes', 'name']

    def test_matched_fields_in_discovery_order(self):
        item = make_item('1', 'books', {'notes': 'herbert', 'title': 'Dune', 'author': 'Frank Herbert'})
        rank, fields = score_item(item, ['dune', 'herbert'])
        assert fields == ['title', 'notes', 'author']

    def test_non_string_values_do_not_crash(self):
        item = make_item('1', 'books', {'title': None, 'rating': 4.0, 'done': True,
                                        'tags': ['Epic'], 'meta': {'year': 1965}})
        rank, fields = score_item(item, ['1965', 'epic', 'true'])
        assert rank == 3
        assert set(fields) == {'meta', 'tags', 'done'}

    def test_keys_are_part_of_the_searchable_text(self):
        item = make_item('1', 'books', {'author': 'Someone'})
        rank, fields = score_item(item, ['author'])
        assert rank == 1
        assert fields == []


class TestSearch:

    @pytest.mark.asyncio
    async def test_dune_example(self):
        books = make_category('books', 'Books')
        items = [
            make_item('a', 'books', {'title': 'Dune', 'rating': 5}),
            make_item('b', 'books', {'title': 'Foundation', 'rating': 3}),
        ]
        engine, _ = build_engine([books], items)

        response = await engine.search("dune")

        assert response.total_count == 1
        result = response.results[0]
        assert result.item.id == 'a'
        assert result.category.name == 'Books'
        assert 'title' in result.matched_fields
        assert result.rank == 3

    @pytest.mark.asyncio
    async def test_empty_query_makes_no_gateway_calls(self, library):
        engine, gateway = build_engine(*library)

        response = await engine.search("")

        assert response.results == []
        assert response.total_count == 0
        assert response.query == ""
        assert response.filters == SearchFilters()
        assert gateway.calls == []
        assert engine.recent_searches() == []

    @pytest.mark.asyncio
    async def test_whitespace_query_short_circuits(self, library):
        engine, gateway = build_engine(*library)
        response = await engine.search("   ")
        assert response.total_count == 0
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_ranked_by_relevance(self, library):
        engine, _ = build_engine(*library)

        response = await engine.search("dune")

        assert [r.item.id for r in response.results] == ['dune', 'frieren']
        assert [r.rank for r in response.results] == [3, 1]
        assert all(r.rank > 0 for r in response.results)

    @pytest.mark.asyncio
    async def test_no_owned_categories_returns_empty(self):
        engine, gateway = build_engine([], [])
        response = await engine.search("dune")
        assert response.total_count == 0
        assert gateway.calls == [('list_owned_categories',)]
        assert engine.recent_searches() == []

    @pytest.mark.asyncio
    async def test_nothing_retrieved_is_not_remembered(self):
        engine, gateway = build_engine([make_category('books', 'Books')], [])

        response = await engine.search("dune")

        assert response.total_count == 0
        assert gateway.calls[-1][0] == 'list_items_in'
        assert engine.recent_searches() == []

    @pytest.mark.asyncio
    async def test_date_range_with_no_items_is_not_remembered(self, library):
        engine, _ = build_engine(*library)

        response = await engine.search("dune", SearchFilters(date_from=NOW + timedelta(days=1)))

        assert response.total_count == 0
        assert engine.recent_searches() == []

    @pytest.mark.asyncio
    async def test_category_filter_limits_candidates(self, library):
        engine, gateway = build_engine(*library)

        response = await engine.search("dune", SearchFilters(category_ids=['anime']))

        assert [r.item.id for r in response.results] == ['frieren']
        assert gateway.calls[-1][1] == ['anime']

    @pytest.mark.asyncio
    async def test_items_in_unknown_categories_are_skipped(self, library):
        categories, items = library
        items.append(make_item('stray', 'someone-else', {'title': 'Dune'}))
        engine, _ = build_engine(categories, items)

        response = await engine.search("dune", SearchFilters(category_ids=['books', 'someone-else']))

        assert [r.item.id for r in response.results] == ['dune']

    @pytest.mark.asyncio
    async def test_date_bounds_are_passed_to_gateway(self, library):
        engine, gateway = build_engine(*library)
        date_from = NOW - timedelta(days=2)
        date_to = NOW

        response = await engine.search("scifi", SearchFilters(date_from=date_from, date_to=date_to))

        assert gateway.calls[-1] == ('list_items_in', ['books', 'anime'], date_from, date_to)
        assert [r.item.id for r in response.results] == ['foundation']

    @pytest.mark.asyncio
    async def test_rating_filter_excludes_unrated(self, library):
        engine, _ = build_engine(*library)

        response = await engine.search("dune", SearchFilters(rating_min=1))

        assert [r.item.id for r in response.results] == ['dune']

    @pytest.mark.asyncio
    async def test_rating_range(self, library):
        engine, _ = build_engine(*library)

        response = await engine.search("scifi", SearchFilters(rating_min=2, rating_max=4))

        assert [r.item.id for r in response.results] == ['foundation']

    @pytest.mark.asyncio
    async def test_boolean_rating_is_not_a_number(self):
        books = make_category('books', 'Books')
        items = [make_item('x', 'books', {'title': 'Odd', 'rating': True})]
        engine, _ = build_engine([books], items)

        response = await engine.search("odd", SearchFilters(rating_min=0))

        assert response.total_count == 0

    @pytest.mark.asyncio
    async def test_status_filter_is_exact(self, library):
        engine, _ = build_engine(*library)

        exact = await engine.search("scifi", SearchFilters(status='Reading'))
        wrong_case = await engine.search("scifi", SearchFilters(status='reading'))

        assert [r.item.id for r in exact.results] == ['foundation']
        assert wrong_case.total_count == 0

    @pytest.mark.asyncio
    async def test_tags_filter_requires_matching_element(self, library):
        engine, _ = build_engine(*library)

        classic = await engine.search("scifi", SearchFilters(tags=['classic', 'missing']))
        upper = await engine.search("scifi", SearchFilters(tags=['Classic']))
        untagged = await engine.search("frieren", SearchFilters(tags=['scifi']))

        assert [r.item.id for r in classic.results] == ['dune']
        assert upper.total_count == 0
        assert untagged.total_count == 0

    @pytest.mark.asyncio
    async def test_tags_filter_ignores_non_list_tags(self):
        books = make_category('books', 'Books')
        items = [make_item('x', 'books', {'title': 'Odd', 'tags': 'scifi'})]
        engine, _ = build_engine([books], items)

        response = await engine.search("odd", SearchFilters(tags=['scifi']))

        assert response.total_count == 0

    @pytest.mark.asyncio
    async def test_sort_by_date(self, library):
        engine, _ = build_engine(*library)

        newest = await engine.search("status", SearchFilters(sort_by='date_desc'))
        oldest = await engine.search("status", SearchFilters(sort_by='date_asc'))

        assert [r.item.id for r in newest.results] == ['foundation', 'frieren', 'dune']
        assert [r.item.id for r in oldest.results] == ['dune', 'frieren', 'foundation']

    @pytest.mark.asyncio
    async def test_sort_by_rating_treats_missing_as_zero(self, library):
        engine, _ = build_engine(*library)

        desc = await engine.search("status", SearchFilters(sort_by='rating_desc'))
        asc = await engine.search("status", SearchFilters(sort_by='rating_asc'))

        assert [r.item.id for r in desc.results] == ['dune', 'foundation', 'frieren']
        assert [r.item.id for r in asc.results] == ['frieren', 'foundation', 'dune']

    @pytest.mark.asyncio
    async def test_ties_keep_retrieval_order(self):
        books = make_category('books', 'Books')
        items = [make_item(str(i), 'books', {'notes': 'same text'}) for i in range(5)]
        engine, _ = build_engine([books], items)

        response = await engine.search("same")

        assert [r.item.id for r in response.results] == ['0', '1', '2', '3', '4']

    @pytest.mark.asyncio
    async def test_search_is_idempotent(self, library):
        engine, _ = build_engine(*library)

        first = await engine.search("dune scifi")
        second = await engine.search("dune scifi")

        assert [(r.item.id, r.rank) for r in first.results] == [(r.item.id, r.rank) for r in second.results]

    @pytest.mark.asyncio
    async def test_gateway_error_propagates_unchanged(self, library):
        error = sqlite3.OperationalError("database is locked")
        engine, _ = build_engine(*library, error=error)

        with pytest.raises(sqlite3.OperationalError) as exc_info:
            await engine.search("dune")

        assert exc_info.value is error
        assert engine.recent_searches() == []

    @pytest.mark.asyncio
    async def test_successful_search_is_remembered(self, library):
        engine, _ = build_engine(*library)

        await engine.search("dune")
        await engine.search("nothing matches this")

        assert engine.recent_searches() == ["nothing matches this", "dune"]

    @pytest.mark.asyncio
    async def test_search_by_category(self, library):
        engine, gateway = build_engine(*library)

        results = await engine.search_by_category('books', "dune", SearchFilters(category_ids=['anime']))

        assert [r.item.id for r in results] == ['dune']
        assert gateway.calls[-1][1] == ['books']


class TestSuggestions:

    def test_suggestions_filter_recent_searches(self):
        history = RecentSearches(MemoryHistoryStore(['Dune Messiah', 'frieren', 'dune']))
        engine, _ = build_engine([], [], history=history)

        suggestions = engine.suggest("DUNE")

        assert [s.text for s in suggestions] == ['Dune Messiah', 'dune']
        assert all(s.type == 'recent' for s in suggestions)

    def test_suggestions_capped_at_five(self):
        history = RecentSearches(MemoryHistoryStore([f'query {i}' for i in range(8)]))
        engine, _ = build_engine([], [], history=history)

        assert len(engine.suggest("query")) == 5

    def test_suggestions_without_history_store(self):
        engine = SearchEngine(FakeGateway())
        assert engine.suggest("anything") == []
