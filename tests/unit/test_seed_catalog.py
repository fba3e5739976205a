from unittest.mock import MagicMock

from storefront import seed

def test_seed_skips_existing_names(store):
    store.add_product(name=seed.SAMPLE_PRODUCTS[0]["name"])

    created = seed.seed()

    assert created == len(seed.SAMPLE_PRODUCTS) - 1
    names = [p["name"] for p in store.products.values()]
    assert len(names) == len(set(names))

def test_seed_is_idempotent(store):
    seed.seed()
    assert seed.seed() == 0

def test_reset_deletes_before_insert(store, monkeypatch):
    client = MagicMock()
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    created = seed.seed(reset=True)

    assert created == len(seed.SAMPLE_PRODUCTS)
    client.table.assert_called_with("products")
    client.table.return_value.delete.return_value.not_.is_.assert_called_once_with("id", "null")

def test_sample_catalog_categories_are_lower_case(store):
    seed.seed()
    assert all(p["category"] == p["category"].lower() for p in store.products.values())
