"""Unit tests for records/store.py -- the in-memory record repository.

Covers:
- seeded records keep their ids; new records get max + 1
- get/list/delete semantics
- concurrent creates never hand out the same id
"""

from concurrent.futures import ThreadPoolExecutor

from records.models import SEED_ORDERS, SEED_PRODUCTS, Order, Product
from records.store import RecordStore


class TestRecordStore:
    def test_seed_keeps_ids(self) -> None:
        store = RecordStore(SEED_PRODUCTS)
        assert [p.id for p in store.list()] == [1, 2, 3]
        assert store.get(2).name == "Product B"

    def test_new_record_gets_next_id(self) -> None:
        store = RecordStore(SEED_PRODUCTS)
        created = store.put(Product(name="Widget", price=1.5, stock=3))
        assert created.id == 4
        assert store.get(4) == created

    def test_first_record_in_empty_store_gets_id_one(self) -> None:
        store: RecordStore[Order] = RecordStore()
        assert store.put(Order(customer_name="A", product_id=1, quantity=1)).id == 1

    def test_next_id_follows_max_not_count(self) -> None:
        store = RecordStore([Product(id=10, name="Ten", price=1.0, stock=1)])
        assert store.put(Product(name="Next", price=1.0, stock=1)).id == 11

    def test_put_with_id_replaces(self) -> None:
        store = RecordStore(SEED_ORDERS)
        store.put(Order(id=2, customer_name="Jane Smith", product_id=2, quantity=1, status="Completed"))
        assert store.get(2).status == "Completed"
        assert len(store) == 2

    def test_get_missing_returns_none(self) -> None:
        assert RecordStore(SEED_PRODUCTS).get(99) is None

    def test_delete(self) -> None:
        store = RecordStore(SEED_PRODUCTS)
        assert store.delete(1) is True
        assert store.delete(1) is False
        assert store.get(1) is None

    def test_concurrent_puts_get_unique_ids(self) -> None:
        store = RecordStore(SEED_ORDERS)

        def create(i: int) -> int:
            return store.put(Order(customer_name=f"c{i}", product_id=1, quantity=1)).id

        with ThreadPoolExecutor(max_workers=16) as pool:
            ids = list(pool.map(create, range(200)))
        assert len(set(ids)) == 200
        assert sorted(ids) == list(range(3, 203))
