import pytest

from tirepoint_search.storage import Database
from tirepoint_search.storage.seed import load_catalog

CATALOG = {
    "vehicles": [
        {"make": "GMC", "model": "Sierra 1500", "years": [2020, 2019]},
        {"make": "GMC", "model": "Canyon", "years": [2021]},
        {"make": "Ford", "model": "F-150", "years": [2020]},
        {"make": "Honda", "model": "Civic", "years": [2018], "status": "draft"},
    ],
    "tires": [
        {
            "title": "Trail Grappler",
            "size": "265/70R17",
            "type": "All Terrain",
            "price": 249.99,
            "stock_status": "instock",
            "url": "/product/trail-grappler/",
            "image": "https://cdn.example.test/trail-grappler.jpg",
            "fits": [{"make": "GMC", "model": "Sierra 1500"}],
        },
        {
            "title": "Alpha AT",
            "size": "275/65R18",
            "type": "All Terrain",
            "price": "",
            "stock_status": "onbackorder",
            "fits": [{"make": "gmc", "model": "sierra 1500"}],
        },
        {
            "title": "Road Hugger",
            "size": "235/55R19",
            "type": "Touring",
            "price": 1234.5,
            "stock_status": "outofstock",
            "terms": {"vehicle-make": ["Ford"]},
        },
        {
            "title": "Winter Claw",
            "size": "215/60R16",
            "type": "Winter",
        },
    ],
}


@pytest.fixture
def db():
    return Database("sqlite:///:memory:")


@pytest.fixture
def catalog_db(db):
    load_catalog(db, CATALOG)
    return db
