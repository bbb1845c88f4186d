import pydantic
import pytest

from bitbucket_rest.adapters.bitbucket_models import Project, Repository
from bitbucket_rest.schemas.page import Limit, Page


class TestLimit:
    def test_first_window(self):
        limit = Limit.first(25)
        assert limit.start == 0
        assert limit.end == 25
        assert limit.size == 25

    def test_as_params_sends_start_and_window_size(self):
        assert Limit(start=50, end=75).as_params() == {"start": 50, "limit": 25}

    def test_rejects_empty_window(self):
        with pytest.raises(pydantic.ValidationError):
            Limit(start=10, end=10)

    def test_rejects_negative_start(self):
        with pytest.raises(pydantic.ValidationError):
            Limit(start=-1, end=5)

    def test_is_immutable(self):
        limit = Limit.first(10)
        with pytest.raises(pydantic.ValidationError):
            limit.start = 5


class TestPage:
    def test_parses_last_page(self, load_fixture):
        page = Page[Project].model_validate(load_fixture("projects.json"))
        assert page.start == 0
        assert page.limit == 25
        assert page.size == 2
        assert page.is_last_page is True
        assert page.next_page_start is None
        assert [p.key for p in page.values] == ["PRJ", "~JSMITH"]

    def test_last_page_has_no_next_limit(self, load_fixture):
        page = Page[Project].model_validate(load_fixture("projects.json"))
        assert page.next_limit() is None

    def test_next_limit_follows_next_page_start(self, load_fixture):
        page = Page[Repository].model_validate(load_fixture("repositories.json"))
        assert page.is_last_page is False
        assert page.next_page_start == 2
        assert page.next_limit() == Limit(start=2, end=4)

    def test_missing_next_page_start_has_no_next_limit(self):
        page = Page[Project].model_validate({"size": 0, "limit": 25, "isLastPage": False, "start": 0, "values": []})
        assert page.next_limit() is None

    def test_values_are_kept_as_sent(self):
        page = Page[Project].model_validate(
            {"size": 1, "limit": 1, "isLastPage": True, "start": 0, "values": [{"key": "A"}, {"key": "B"}]}
        )
        assert [p.key for p in page.values] == ["A", "B"]
