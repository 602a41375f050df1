from pathlib import Path

from tirepoint_search.search import SearchHandler
from tirepoint_search.storage.seed import load_catalog

SAMPLE_CATALOG = Path(__file__).parent.parent / "data" / "catalog.sample.yaml"


def test_sample_catalog_loads(db):
    counts = load_catalog(db, SAMPLE_CATALOG)

    assert counts == {"vehicles": 3, "tires": 3}
    assert [t.slug for t in db.get_terms("vehicle-make")] == ["ford", "gmc", "toyota"]
    assert len(db.get_posts("product")) == 3


def test_sample_catalog_lookups(db):
    load_catalog(db, SAMPLE_CATALOG)
    handler = SearchHandler(db)

    f150 = handler.get_tire_results("ford", "f-150")
    assert [t.title for t in f150] == [
        "BFGoodrich All-Terrain T/A KO2",
        "Michelin Defender LTX M/S",
    ]
    assert f150[0].availability == "On Backorder"

    rav4 = handler.get_tire_results("toyota", "rav4")
    assert [t.title for t in rav4] == ["Bridgestone Dueler H/L Alenza Plus"]
    assert rav4[0].price == "$214.50"
    assert rav4[0].availability == "Out of Stock"


def test_links_to_unknown_vehicles_are_skipped(db):
    catalog = {
        "vehicles": [{"make": "Kia", "model": "Soul", "years": [2022]}],
        "tires": [
            {"title": "Orphan", "fits": [{"make": "Kia", "model": "Telluride"}]},
            {"size": "205/55R16"},
        ],
    }

    counts = load_catalog(db, catalog)

    assert counts == {"vehicles": 1, "tires": 1}
    orphan = db.get_posts("product")[0]
    assert db.get_post_meta(orphan.id, "_vehicle_id") == ""


def test_scalar_terms_and_years_are_single_values(db):
    catalog = {
        "vehicles": [{"make": "Toyota", "model": "RAV4", "years": 2020}],
        "tires": [
            {
                "title": "Dueler",
                "terms": {"vehicle-make": "Toyota"},
                "fits": {"make": "Toyota", "model": "RAV4"},
            }
        ],
    }

    load_catalog(db, catalog)

    vehicle = db.get_posts("vehicle-model")[0]
    tire = db.get_posts("product")[0]
    assert [t.name for t in db.get_post_terms(vehicle.id, "vehicle-model-year")] == ["2020"]
    assert [t.slug for t in db.get_terms("vehicle-make")] == ["toyota"]
    assert [t.slug for t in db.get_post_terms(tire.id, "vehicle-make")] == ["toyota"]
    assert db.get_post_meta(tire.id, "_vehicle_id") == str(vehicle.id)
