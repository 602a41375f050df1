from concurrent.futures import ThreadPoolExecutor

from tirepoint_search.search import SearchLog


def test_search_log_keeps_only_the_newest_entries(db):
    log = SearchLog(db)

    for i in range(105):
        log.append({"make": "gmc", "model": f"model-{i}"}, user_ip="127.0.0.1", timestamp=i)

    entries = log.recent()
    assert len(entries) == 100
    assert entries[0].timestamp == 5
    assert entries[-1].model == "model-104"
    assert [e.timestamp for e in log.recent(3)] == [102, 103, 104]


def test_search_log_record_shape(db):
    log = SearchLog(db, option_name="custom_log", limit=5)

    log.append({"make": "ford", "year": 2020}, timestamp=1700000000)

    assert db.get_option("custom_log") == [
        {
            "make": "ford",
            "model": "",
            "year": "2020",
            "timestamp": 1700000000,
            "user_ip": "",
        }
    ]
    assert log.recent(0) == []


def test_concurrent_appends_are_all_kept(db):
    log = SearchLog(db)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: log.append({"make": "gmc", "year": 2000 + i}, timestamp=i), range(20)))

    entries = log.recent()
    assert len(entries) == 20
    assert sorted(e.timestamp for e in entries) == list(range(20))
