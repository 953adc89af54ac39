from dossiers_client_sdk.models import PageResult

from dossiers_control.app.listing_cache import ListingCache, cache_key


class _Clock:
    def __init__(self) -> None:
        self.value = 100.0

    def __call__(self) -> float:
        return self.value


def test_cache_key_ignores_param_order() -> None:
    first = cache_key(("demandes",), {"page": 1, "limit": 50, "type": ["VICTIME"]})
    second = cache_key(("demandes",), {"type": ["VICTIME"], "limit": 50, "page": 1})

    assert first == second
    assert first != cache_key(("dossiers",), {"page": 1, "limit": 50, "type": ["VICTIME"]})


def test_entries_expire_after_ttl() -> None:
    clock = _Clock()
    cache = ListingCache(ttl_seconds=30, now=clock)
    key = cache_key(("demandes",), {"page": 1})
    page = PageResult(data=[{"id": 1}], total=1, page_count=1)

    cache.set(key, page)
    clock.value += 29
    assert cache.get(key) == page

    clock.value += 2
    assert cache.get(key) is None


def test_invalidate_query_drops_only_that_table() -> None:
    cache = ListingCache(ttl_seconds=30, now=_Clock())
    demandes_1 = cache_key(("demandes",), {"page": 1})
    demandes_2 = cache_key(("demandes",), {"page": 2})
    dossiers = cache_key(("dossiers",), {"page": 1})
    for key in (demandes_1, demandes_2, dossiers):
        cache.set(key, PageResult())

    cache.invalidate_query(("demandes",))

    assert cache.get(demandes_1) is None
    assert cache.get(demandes_2) is None
    assert cache.get(dossiers) == PageResult()


def test_clear() -> None:
    cache = ListingCache()
    key = cache_key(("demandes",), {})
    cache.set(key, PageResult())

    cache.clear()

    assert cache.get(key) is None


def test_set_purges_expired_entries_for_unread_keys() -> None:
    clock = _Clock()
    cache = ListingCache(ttl_seconds=1, now=clock)

    for index in range(1000):
        cache.set(cache_key(("demandes",), {"nom": f"x{index}"}), PageResult())
        clock.value += 5

    assert len(cache) == 1


def test_set_evicts_oldest_entries_past_max_size() -> None:
    cache = ListingCache(ttl_seconds=30, now=_Clock(), max_entries=3)
    keys = [cache_key(("demandes",), {"page": page}) for page in range(1, 6)]

    for key in keys:
        cache.set(key, PageResult(total=1))

    assert len(cache) == 3
    assert cache.get(keys[0]) is None
    assert cache.get(keys[1]) is None
    assert cache.get(keys[4]) == PageResult(total=1)


def test_rewriting_a_key_refreshes_its_position() -> None:
    cache = ListingCache(ttl_seconds=30, now=_Clock(), max_entries=2)
    first = cache_key(("demandes",), {"page": 1})
    second = cache_key(("demandes",), {"page": 2})
    third = cache_key(("demandes",), {"page": 3})

    cache.set(first, PageResult())
    cache.set(second, PageResult())
    cache.set(first, PageResult(total=4))
    cache.set(third, PageResult())

    assert cache.get(second) is None
    assert cache.get(first) == PageResult(total=4)
