from tirepoint_search.search import SearchHandler
from tirepoint_search.search.fallback import DEMO_TIRES
from tirepoint_search.utils.config import SearchConfig


def _values(options):
    return [option.value for option in options]


def test_get_makes_lists_only_makes_with_published_vehicles(catalog_db):
    handler = SearchHandler(catalog_db)

    makes = handler.get_makes()

    # Honda only appears on a draft vehicle
    assert [(m.value, m.label) for m in makes] == [("ford", "Ford"), ("gmc", "GMC")]


def test_get_models_unions_terms_of_matching_vehicles(catalog_db):
    handler = SearchHandler(catalog_db)

    assert _values(handler.get_models("gmc")) == ["canyon", "sierra-1500"]
    assert _values(handler.get_models("GMC")) == ["canyon", "sierra-1500"]
    assert handler.get_models("honda") == []
    assert handler.get_models("tesla") == []


def test_get_years_filters_by_make_and_model(catalog_db):
    handler = SearchHandler(catalog_db)

    years = handler.get_years("gmc", "sierra-1500")
    assert [(y.value, y.label) for y in years] == [("2019", "2019"), ("2020", "2020")]

    assert _values(handler.get_years("ford", "sierra-1500")) == []


def test_fuzzy_input_resolves_to_the_closest_term(catalog_db):
    handler = SearchHandler(catalog_db)

    assert handler.resolve_slug("vehicles-model", "Siera 1500") == "sierra-1500"
    assert handler.resolve_slug("vehicles-model", "Corolla") == "corolla"
    assert handler.resolve_slug("vehicles-model", "") == ""
    assert _values(handler.get_years("gmc", "Siera 1500")) == ["2019", "2020"]


def test_fuzzy_match_requires_the_same_numbers(catalog_db):
    handler = SearchHandler(catalog_db, SearchConfig(demo_fallback=False))

    assert handler.resolve_slug("vehicles-model", "Sierra 2500") == "sierra-2500"
    assert handler.resolve_slug("vehicles-model", "Sierra 150") == "sierra-150"
    assert handler.get_years("gmc", "Sierra 2500") == []
    assert handler.get_tire_results("gmc", "Sierra 2500") == []


def test_tire_results_prefer_vehicle_meta_links(catalog_db):
    handler = SearchHandler(catalog_db)

    tires = handler.get_tire_results("gmc", "sierra-1500")

    assert [t.title for t in tires] == ["Alpha AT", "Trail Grappler"]
    alpha, grappler = tires
    assert alpha.price == "Price on request"
    assert alpha.availability == "On Backorder"
    assert alpha.url == f"/?p={alpha.id}"
    assert grappler.size == "265/70R17"
    assert grappler.type == "All Terrain"
    assert grappler.price == "$249.99"
    assert grappler.availability == "In Stock"
    assert grappler.image == "https://cdn.example.test/trail-grappler.jpg"
    assert grappler.url == "/product/trail-grappler/"


def test_make_only_search_uses_shared_taxonomy_terms(catalog_db):
    handler = SearchHandler(catalog_db)

    tires = handler.get_tire_results("ford")

    assert [t.title for t in tires] == ["Road Hugger"]
    assert tires[0].price == "$1,234.50"
    assert tires[0].availability == "Out of Stock"


def test_unlinked_vehicle_falls_back_to_whole_catalog(catalog_db):
    handler = SearchHandler(catalog_db)

    tires = handler.get_tire_results("gmc", "canyon")

    assert [t.title for t in tires] == ["Alpha AT", "Road Hugger", "Trail Grappler", "Winter Claw"]
    assert tires[-1].availability == "Check Availability"


def test_results_are_capped(catalog_db):
    handler = SearchHandler(catalog_db, SearchConfig(results_limit=1))

    assert [t.title for t in handler.get_tire_results("gmc", "canyon")] == ["Alpha AT"]


def test_no_catalog_fallback_leads_to_demo_tires(catalog_db):
    handler = SearchHandler(catalog_db, SearchConfig(catalog_fallback=False))

    tires = handler.get_tire_results("gmc", "canyon")

    assert [t.id for t in tires] == [1, 2, 3]


def test_unknown_vehicle_returns_demo_tires(catalog_db):
    handler = SearchHandler(catalog_db)

    tires = handler.get_tire_results("honda", "civic")

    assert [t.model_dump() for t in tires] == [t.model_dump() for t in DEMO_TIRES]
    assert tires[0].title == "GMC Sierra 1500 Compatible Tire"
    assert tires[2].price == "$299.99"


def test_demo_fallback_can_be_disabled(catalog_db):
    handler = SearchHandler(catalog_db, SearchConfig(demo_fallback=False))

    assert handler.get_tire_results("honda", "civic") == []
    assert handler.get_tire_results("") == []


def test_year_narrows_the_vehicle_match(catalog_db):
    handler = SearchHandler(catalog_db, SearchConfig(demo_fallback=False))

    assert len(handler.find_vehicles("gmc", "sierra-1500", "2019")) == 1
    assert handler.find_vehicles("gmc", "sierra-1500", "2021") == []
    assert [t.title for t in handler.get_tire_results("gmc", "sierra-1500", "2020")] == [
        "Alpha AT",
        "Trail Grappler",
    ]


def test_vehicles_under_alternate_taxonomy_names_are_found(db):
    vehicle = db.insert_post("car", "Mazda CX-5")
    db.set_post_terms(vehicle.id, "car-make", ["Mazda"])
    db.set_post_terms(vehicle.id, "car-model", ["CX-5"])
    tire = db.insert_post("product", "City Cruiser")
    db.add_post_meta(tire.id, "_vehicle_id", vehicle.id)

    handler = SearchHandler(db, SearchConfig(demo_fallback=False))

    assert [v.id for v in handler.find_vehicles("mazda", "cx-5")] == [vehicle.id]
    assert [t.title for t in handler.get_tire_results("Mazda", "CX-5")] == ["City Cruiser"]


def test_log_search_respects_setting(catalog_db):
    handler = SearchHandler(catalog_db)
    record = handler.log_search({"make": "gmc", "model": "canyon"}, "10.0.0.1")

    assert record.user_ip == "10.0.0.1"
    assert catalog_db.get_option("tpsf_search_log")[0]["make"] == "gmc"

    quiet = SearchHandler(catalog_db, SearchConfig(log_searches=False))
    assert quiet.log_search({"make": "ford"}) is None
    assert len(catalog_db.get_option("tpsf_search_log")) == 1
