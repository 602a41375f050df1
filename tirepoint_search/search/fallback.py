"""Demo tires shown when a lookup finds nothing."""

from ..storage.models import TireResult

DEMO_TIRES = [
    TireResult(
        id=1,
        title="GMC Sierra 1500 Compatible Tire",
        size="265/70R17",
        type="All Season",
        price="$189.99",
        image="",
        availability="In Stock",
        url="#",
    ),
    TireResult(
        id=2,
        title="Premium Truck Tire",
        size="275/65R18",
        type="All Terrain",
        price="$249.99",
        image="",
        availability="In Stock",
        url="#",
    ),
    TireResult(
        id=3,
        title="High Performance Tire",
        size="285/60R20",
        type="Summer",
        price="$299.99",
        image="",
        availability="In Stock",
        url="#",
    ),
]


def demo_tires() -> list[TireResult]:
    return [tire.model_copy() for tire in DEMO_TIRES]
