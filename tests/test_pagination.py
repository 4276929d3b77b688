"""
Tests for page-number pagination resolution.
"""

import pytest

from app.pagination import (
    CARD_DEFAULT_PAGE_SIZE,
    CARD_MAX_PAGE_SIZE,
    MAX_PAGE,
    USER_DEFAULT_PAGE_SIZE,
    USER_MAX_PAGE_SIZE,
    build_page_request,
)


def card_page(page, size):
    return build_page_request(page, size, CARD_DEFAULT_PAGE_SIZE, CARD_MAX_PAGE_SIZE)


def test_defaults():
    request = card_page(None, None)
    assert request.page_index == 0
    assert request.page_size == 5
    assert request.offset == 0


def test_pages_are_one_based():
    request = card_page(3, 5)
    assert request.page_index == 2
    assert request.offset == 10
    assert request.limit == 5


@pytest.mark.parametrize("page", [0, -1])
def test_non_positive_page_is_first_page(page):
    assert card_page(page, 5).page_index == 0


@pytest.mark.parametrize("size", [0, -3])
def test_non_positive_size_uses_default(size):
    assert card_page(1, size).page_size == CARD_DEFAULT_PAGE_SIZE


def test_size_is_clamped():
    assert card_page(1, 1000).page_size == 15


def test_user_limits():
    assert build_page_request(None, None, USER_DEFAULT_PAGE_SIZE, USER_MAX_PAGE_SIZE).page_size == 10
    assert build_page_request(None, 51, USER_DEFAULT_PAGE_SIZE, USER_MAX_PAGE_SIZE).page_size == 50


def test_huge_page_is_clamped():
    request = card_page(10**30, 15)
    assert request.page_index == MAX_PAGE - 1
    assert request.offset == (MAX_PAGE - 1) * 15


async def test_huge_page_returns_empty_listing(client, admin, user, issue_card):
    await issue_card(user.id, "1.00")

    cards = await client.get(
        "/api/v1/cards", params={"page": 10**20, "size": 15}, headers=admin.headers
    )
    users = await client.get(
        "/api/v1/users", params={"page": 10**20, "size": 50}, headers=admin.headers
    )
    assert cards.status_code == users.status_code == 200
    assert cards.json() == users.json() == []
