"""Load a vehicle and tire catalog from YAML into the content store.

Catalog layout::

    vehicles:
      - make: GMC
        model: Sierra 1500
        years: [2019, 2020]
    tires:
      - title: Trail Grappler
        size: 265/70R17
        type: All Terrain
        price: 249.99
        stock_status: instock
        fits:
          - {make: GMC, model: Sierra 1500}
        terms:
          vehicle-make: [GMC]
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

from ..utils.config import SearchConfig
from .database import Database

TIRE_META_FIELDS = {
    "size": "_tire_size",
    "type": "_tire_type",
    "price": "_price",
    "regular_price": "_regular_price",
    "sale_price": "_sale_price",
    "stock_status": "_stock_status",
}


def _as_list(value: Any) -> list:
    """A YAML scalar or list as a list (``GMC`` and ``[GMC]`` load the same)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _vehicle_key(make: Any, model: Any) -> tuple[str, str]:
    return (str(make or "").strip().lower(), str(model or "").strip().lower())


def load_catalog(
    db: Database,
    source: Union[str, Path, Dict[str, Any]],
    config: Optional[SearchConfig] = None,
) -> Dict[str, int]:
    """Insert the vehicles and tires of a catalog.

    Args:
        db: Content store
        source: Path to a YAML file, or an already parsed catalog
        config: Taxonomy and post type names

    Returns:
        Number of vehicles and tires inserted
    """
    config = config or SearchConfig()

    if isinstance(source, dict):
        catalog = source
    else:
        with open(source, "r") as f:
            catalog = yaml.safe_load(f) or {}

    vehicles: Dict[tuple[str, str], list[int]] = {}

    for entry in catalog.get("vehicles") or []:
        make, model = entry.get("make"), entry.get("model")
        if not make:
            logger.warning(f"Skipping vehicle without make: {entry}")
            continue

        post = db.insert_post(
            config.vehicle_post_type,
            title=entry.get("title") or f"{make} {model or ''}".strip(),
            status=entry.get("status", "publish"),
        )
        db.set_post_terms(post.id, config.make_taxonomy, [make])
        if model:
            db.set_post_terms(post.id, config.model_taxonomy, [model])
        db.set_post_terms(post.id, config.year_taxonomy, [str(y) for y in _as_list(entry.get("years"))])

        vehicles.setdefault(_vehicle_key(make, model), []).append(post.id)

    tire_count = 0
    for entry in catalog.get("tires") or []:
        if not entry.get("title"):
            logger.warning(f"Skipping tire without title: {entry}")
            continue

        post = db.insert_post(
            config.product_post_type,
            title=entry["title"],
            status=entry.get("status", "publish"),
            permalink=entry.get("url"),
            thumbnail_url=entry.get("image"),
        )

        for field, meta_key in TIRE_META_FIELDS.items():
            if entry.get(field) is not None:
                db.add_post_meta(post.id, meta_key, entry[field])

        for fit in _as_list(entry.get("fits")):
            vehicle_ids = vehicles.get(_vehicle_key(fit.get("make"), fit.get("model")))
            if not vehicle_ids:
                logger.warning(f"Tire '{entry['title']}' fits unknown vehicle: {fit}")
                continue
            for vehicle_id in vehicle_ids:
                db.add_post_meta(post.id, config.vehicle_meta_key, vehicle_id)

        for taxonomy, names in (entry.get("terms") or {}).items():
            db.set_post_terms(post.id, taxonomy, [str(name) for name in _as_list(names)])

        tire_count += 1

    vehicle_count = sum(len(ids) for ids in vehicles.values())
    logger.info(f"Loaded {vehicle_count} vehicles and {tire_count} tires")
    return {"vehicles": vehicle_count, "tires": tire_count}
