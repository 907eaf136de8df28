"""Store reference data.

Stores are selected on the second gate and never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable

from safetyguard.models import Store, StoreCategory

_D = StoreCategory.DEPARTMENT
_O = StoreCategory.OUTLET

STORES: tuple[Store, ...] = (
    # Department stores (1111 ~ 1123)
    Store(id="dept-2", name="Apgujeong Main Store", access_code="1111", category=_D),
    Store(id="dept-3", name="Trade Center", access_code="1112", category=_D),
    Store(id="dept-4", name="Cheonho", access_code="1113", category=_D),
    Store(id="dept-5", name="Sinchon", access_code="1114", category=_D),
    Store(id="dept-6", name="Mia", access_code="1115", category=_D),
    Store(id="dept-7", name="Mokdong", access_code="1116", category=_D),
    Store(id="dept-8", name="Jungdong", access_code="1117", category=_D),
    Store(id="dept-10", name="Kintex", access_code="1118", category=_D),
    Store(id="dept-12", name="Ulsan", access_code="1119", category=_D),
    Store(id="dept-11", name="The Hyundai Daegu", access_code="1120", category=_D),
    Store(id="dept-13", name="Chungcheong", access_code="1121", category=_D),
    Store(id="dept-9", name="Pangyo", access_code="1122", category=_D),
    Store(id="dept-1", name="The Hyundai Seoul", access_code="1123", category=_D),
    # Outlets (1124 ~ 1133)
    Store(id="outlet-1", name="Premium Outlet Gimpo", access_code="1124", category=_O),
    Store(id="outlet-2", name="Premium Outlet Songdo", access_code="1125", category=_O),
    Store(id="outlet-3", name="Premium Outlet Daejeon", access_code="1126", category=_O),
    Store(id="outlet-4", name="Premium Outlet SPACE1", access_code="1127", category=_O),
    Store(id="outlet-7", name="Outlet Dongdaemun", access_code="1128", category=_O),
    Store(id="outlet-9", name="Outlet Garden Five", access_code="1129", category=_O),
    Store(id="outlet-10", name="Outlet Daegu", access_code="1130", category=_O),
    Store(id="outlet-8", name="Outlet Gasan", access_code="1131", category=_O),
    Store(id="outlet-5", name="Connect Hyundai Busan", access_code="1132", category=_O),
    Store(id="outlet-11", name="Connect Hyundai Cheongju", access_code="1133", category=_O),
)

_BY_ID = {store.id: store for store in STORES}


def get_store(store_id: str) -> Store | None:
    return _BY_ID.get(store_id)


def search_stores(term: str = "", stores: Iterable[Store] = STORES) -> list[Store]:
    """Case-insensitive substring match on the store name."""
    needle = term.strip().lower()
    return [store for store in stores if needle in store.name.lower()]


def group_by_category(stores: Iterable[Store]) -> dict[StoreCategory, list[Store]]:
    """Department stores first, then outlets; catalog order kept within each."""
    groups: dict[StoreCategory, list[Store]] = {category: [] for category in StoreCategory}
    for store in stores:
        groups[store.category].append(store)
    return groups
