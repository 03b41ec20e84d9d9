from __future__ import annotations

from datetime import timedelta

import pytest

from promo_api.core.utils import utcnow
from promo_api.domain.constants import UserOrigin
from promo_api.services.products_service import (
    AlreadyMonitoringError,
    ProductNotFoundError,
    ProductsError,
    ProductsService,
    PromotionFilters,
    SearchFilters,
    paginate,
    relevance_score,
)


@pytest.fixture()
def svc(temp_db) -> ProductsService:
    return ProductsService()


def _ids(result):
    return [item["title"] for item in result["data"]]


def test_paginate_metadata():
    result = paginate(list(range(45)), page=3, limit=20)
    assert result["data"] == list(range(40, 45))
    assert result["pagination"] == {
        "page": 3,
        "limit": 20,
        "total": 45,
        "totalPages": 3,
        "hasNextPage": False,
        "hasPreviousPage": True,
    }
    assert paginate([], 1, 20)["pagination"]["totalPages"] == 0
    assert paginate([1, 2], 5, 20)["data"] == []


def test_relevance_score():
    assert relevance_score("Batman Ano Um", "batman") == 160
    assert relevance_score("O Retorno do Batman", "batman") == 60
    assert relevance_score("Batman Ano Um", "batman um") == 20


def test_list_orders_by_updated_at_desc(svc, make_product):
    make_product("Old", minutes=0)
    make_product("Newest", minutes=20)
    make_product("Middle", minutes=10)

    result = svc.list_products(1, 2)
    assert _ids(result) == ["Newest", "Middle"]
    assert result["pagination"]["total"] == 3
    assert result["pagination"]["hasNextPage"] is True


def test_search_filters_and_relevance(svc, make_product):
    make_product("O Retorno do Batman", price=40, minutes=30, publisher="Panini")
    make_product("Batman: Ano Um", price=25, minutes=10, publisher="panini")
    make_product("Batman Eterno", price=90, minutes=20, publisher="Panini", in_stock=False)
    make_product("Sandman", price=30, minutes=40, publisher="Panini")

    result = svc.search_products(SearchFilters(query="batman"), 1, 20)
    # prefixo primeiro; empate desfeito por updated_at
    assert _ids(result) == ["Batman Eterno", "Batman: Ano Um", "O Retorno do Batman"]

    result = svc.search_products(SearchFilters(query="batman", max_price=50, publisher="PANINI"), 1, 20)
    assert _ids(result) == ["Batman: Ano Um", "O Retorno do Batman"]

    result = svc.search_products(SearchFilters(available=False), 1, 20)
    assert _ids(result) == ["Batman Eterno"]

    result = svc.search_products(SearchFilters(min_price=30, max_price=40), 1, 20)
    assert _ids(result) == ["Sandman", "O Retorno do Batman"]


def test_results_are_cached_until_cleared(svc, make_product):
    make_product("First", minutes=0)
    assert _ids(svc.list_products(1, 20)) == ["First"]

    make_product("Second", minutes=5)
    assert _ids(svc.list_products(1, 20)) == ["First"]
    assert svc.get_cache_stats() == {"size": 1, "keys": ["list:1:20"]}

    svc.clear_cache("list:1:20")
    assert _ids(svc.list_products(1, 20)) == ["Second", "First"]

    svc.clear_cache()
    assert svc.get_cache_stats()["size"] == 0


def test_cache_expires_after_ttl(temp_db, make_product):
    svc = ProductsService(cache_ttl_seconds=0)
    make_product("First")
    svc.list_products(1, 20)
    make_product("Second", minutes=1)
    assert _ids(svc.list_products(1, 20)) == ["Second", "First"]


def test_get_product_caches_misses(svc, make_product):
    assert svc.get_product("B999999999") is None
    assert "product:B999999999" in svc.get_cache_stats()["keys"]

    product = make_product("Saga", id="B000000042")
    assert svc.get_product("B999999999") is None
    data = svc.get_product(product.id)
    assert data["title"] == "Saga"
    assert data["discount_percentage"] == 40.0


def test_scan_limit_caps_repository_read(temp_db, make_product):
    svc = ProductsService(scan_limit=2)
    for minutes in range(4):
        make_product(f"P{minutes}", minutes=minutes)
    result = svc.list_products(1, 20)
    assert result["pagination"]["total"] == 2
    assert _ids(result) == ["P3", "P2"]


def test_promotions_filtering_and_sorting(svc, make_product):
    make_product("Half Off", price=25, full_price=50, minutes=1, contributors=["Neil Gaiman"], genre="Fantasia")
    make_product("Small Drop", price=45, full_price=50, minutes=2, contributors=["Alan Moore"], preorder=True)
    make_product("Full Price", price=50, full_price=50, minutes=3)
    make_product("Old Price Drop", price=30, full_price=30, old_price=40, minutes=4, in_stock=False)

    result = svc.get_promotions(PromotionFilters(), 1, 20)
    assert _ids(result) == ["Half Off", "Old Price Drop", "Small Drop"]

    result = svc.get_promotions(PromotionFilters(sort_by="price-high"), 1, 20)
    assert _ids(result) == ["Small Drop", "Old Price Drop", "Half Off"]

    result = svc.get_promotions(PromotionFilters(sort_by="name"), 1, 20)
    assert _ids(result) == ["Half Off", "Old Price Drop", "Small Drop"]

    result = svc.get_promotions(PromotionFilters(query="gaiman"), 1, 20)
    assert _ids(result) == ["Half Off"]

    result = svc.get_promotions(PromotionFilters(contributors=["alan moore", "Someone"]), 1, 20)
    assert _ids(result) == ["Small Drop"]

    result = svc.get_promotions(PromotionFilters(in_stock=True, preorder=False), 1, 20)
    assert _ids(result) == ["Half Off"]

    with pytest.raises(ProductsError, match="sortBy"):
        svc.get_promotions(PromotionFilters(sort_by="random"), 1, 20)


def test_only_my_products_requires_user_and_skips_cache(svc, repo, make_product):
    mine = make_product("Mine", price=10, full_price=20)
    make_product("Other", price=10, full_price=20)
    user = repo.create_user(email="me@example.com", enabled=True, origin=UserOrigin.SITE.value)
    repo.create_product_user(user.id, mine.id)

    with pytest.raises(ProductsError) as excinfo:
        svc.get_promotions(PromotionFilters(only_my_products=True), 1, 20)
    assert excinfo.value.status_code == 401

    result = svc.get_promotions(PromotionFilters(only_my_products=True), 1, 20, user_id=user.id)
    assert _ids(result) == ["Mine"]
    assert svc.get_cache_stats()["size"] == 0


def test_latest_promotions_and_filter_options(svc, make_product):
    make_product("A", price=10, full_price=20, minutes=1, category="HQ", publisher="Panini", contributors=["B", "a"])
    make_product("B", price=10, full_price=20, minutes=2, category="Mangá", publisher="JBC", format="Capa dura")
    make_product("C", price=10, full_price=20, minutes=3, in_stock=False, category="Quadrinhos")
    make_product("D", price=20, full_price=20, minutes=4)

    assert [p["title"] for p in svc.get_latest_promotions(3)] == ["B", "A"]

    options = svc.get_filter_options()
    assert options["categories"] == ["HQ", "Mangá", "Quadrinhos"]
    assert options["publishers"] == ["JBC", "Panini"]
    assert options["formats"] == ["Capa dura"]
    assert options["contributors"] == ["a", "B"]
    assert options["genres"] == []


def test_product_stats_respect_period(svc, repo, make_product):
    product = make_product("Saga")
    now = utcnow()
    repo.create_product_stats(product.id, 45.0, 50.0, created_at=now - timedelta(days=3))
    repo.create_product_stats(product.id, 40.0, 45.0, created_at=now - timedelta(days=60))

    recent = svc.get_product_stats(product.id, 7)
    assert [s["price"] for s in recent] == [45.0]
    assert recent[0]["percentage_change"] == -10.0
    assert len(svc.get_product_stats(product.id, 90)) == 2
    assert svc.get_product_stats("B404", 30) == []


def test_monitoring(svc, repo, make_product):
    product = make_product("Saga")
    user = repo.create_user(email="me@example.com", enabled=True, origin=UserOrigin.SITE.value)

    assert svc.is_user_monitoring(user.id, product.id) is False
    svc.monitor_product(user.id, product.id, 19.9)
    assert svc.is_user_monitoring(user.id, product.id) is True

    with pytest.raises(AlreadyMonitoringError, match="Você já está monitorando este produto"):
        svc.monitor_product(user.id, product.id)
    with pytest.raises(ProductNotFoundError, match="Produto não encontrado"):
        svc.monitor_product(user.id, "B404")

    assert svc.unmonitor_product(user.id, product.id) is True
    assert svc.unmonitor_product(user.id, product.id) is False


def test_false_flags_do_not_share_cache_with_unfiltered_promotions(svc, make_product):
    make_product("In Stock Promo", price=10, full_price=20, minutes=2)
    make_product("Sold Out Promo", price=10, full_price=30, minutes=1, in_stock=False, preorder=True)

    assert _ids(svc.get_promotions(PromotionFilters(), 1, 20)) == ["Sold Out Promo", "In Stock Promo"]
    assert _ids(svc.get_promotions(PromotionFilters(in_stock=False), 1, 20)) == ["Sold Out Promo"]
    assert _ids(svc.get_promotions(PromotionFilters(preorder=False), 1, 20)) == ["In Stock Promo"]
    assert svc.get_cache_stats()["size"] == 3


def test_concurrent_monitor_insert_maps_to_conflict(svc, repo, make_product, monkeypatch):
    product = make_product("Saga")
    user = repo.create_user(email="me@example.com", enabled=True, origin=UserOrigin.SITE.value)
    repo.create_product_user(user.id, product.id)
    # simula outra requisicao que inseriu o vinculo depois da verificacao
    monkeypatch.setattr(svc, "is_user_monitoring", lambda *_: False)

    with pytest.raises(AlreadyMonitoringError) as excinfo:
        svc.monitor_product(user.id, product.id)
    assert excinfo.value.status_code == 409
    assert svc.repository.get_product_user(user.id, product.id) is not None
