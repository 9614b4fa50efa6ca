"""Conftest for unit tests - automatically mark all tests as unit tests."""

import pytest

from tests.fixtures.zendesk_corpus import ORGANIZATIONS, TICKETS, USERS
from zen_search.domain.graph import build_graph
from zen_search.domain.model import Organization, Ticket, User
from zen_search.search.indexer import IndexBuilder
from zen_search.search.query import QueryEngine
from zen_search.search.schema import create_index_mapping


def pytest_collection_modifyitems(config, items):
    """Automatically mark all tests in the unit directory as unit tests."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def graph():
    return build_graph(
        [User.model_validate(raw) for raw in USERS],
        [Organization.model_validate(raw) for raw in ORGANIZATIONS],
        [Ticket.model_validate(raw) for raw in TICKETS],
    )


@pytest.fixture
def mapping():
    return create_index_mapping()


@pytest.fixture
def segment(graph, mapping):
    return IndexBuilder(mapping).build(graph)


@pytest.fixture
def engine(segment):
    return QueryEngine(segment)
