import pytest

from storefront.errors import NotFound
from storefront.wishlist import service as wishlist_service

USER = "test-user"

def test_add_is_deduplicated(store):
    p = store.add_product(name="Lamp")
    wishlist_service.add_to_wishlist(USER, p["id"])
    items = wishlist_service.add_to_wishlist(USER, p["id"])
    assert [i["id"] for i in items] == [p["id"]]
    assert store.users[USER]["wishlist"] == [p["id"]]

def test_add_unknown_product_is_not_found(store):
    with pytest.raises(NotFound):
        wishlist_service.add_to_wishlist(USER, "nope")

def test_remove_is_idempotent(store):
    p = store.add_product()
    wishlist_service.add_to_wishlist(USER, p["id"])
    assert wishlist_service.remove_from_wishlist(USER, p["id"]) == []
    assert wishlist_service.remove_from_wishlist(USER, p["id"]) == []

def test_get_wishlist_hides_deleted_products(store):
    p = store.add_product()
    store.users[USER]["wishlist"] = [p["id"], "gone"]
    assert [i["id"] for i in wishlist_service.get_wishlist(USER)] == [p["id"]]
