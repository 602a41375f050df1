"""Vehicle selector and tire lookup."""

import re
from typing import Dict, Optional

from loguru import logger
from rapidfuzz import fuzz

from ..storage.database import Database
from ..storage.models import MetaClause, Post, SelectOption, TaxClause, TireResult, term_option
from ..utils.config import SearchConfig
from ..utils.text import sanitize_title
from .fallback import demo_tires
from .pricing import PriceFormatter, availability
from .search_log import SearchLog

PRODUCT_META_KEYS = ("_tire_size", "_tire_type", "_price", "_regular_price", "_sale_price", "_stock_status")
_NUMBER_RE = re.compile(r"\d+")


class SearchHandler:
    """Answer the make → model → year dropdown queries and find matching tires.

    Every lookup is a linear scan over published posts; there is no index
    beyond what the database gives for free and no ranking.
    """

    def __init__(
        self,
        db: Database,
        config: Optional[SearchConfig] = None,
        price_formatter: Optional[PriceFormatter] = None,
    ):
        """Initialize search handler.

        Args:
            db: Content store
            config: Taxonomy names, candidates and limits
            price_formatter: Price renderer, plain formatting by default
        """
        self.db = db
        self.config = config or SearchConfig()
        self.prices = price_formatter or PriceFormatter()
        self.search_log = SearchLog(
            db,
            option_name=self.config.search_log_option,
            limit=self.config.search_log_limit,
        )

    # ------------------------------------------------------------------
    # Dropdowns
    # ------------------------------------------------------------------

    def get_makes(self) -> list[SelectOption]:
        """Get top-level makes that at least one published vehicle uses."""
        cfg = self.config
        makes = []

        for term in self.db.get_terms(cfg.make_taxonomy, parent=0, orderby="name", order="ASC"):
            related = self.db.get_posts(
                cfg.vehicle_post_type,
                tax_query=[TaxClause(taxonomy=cfg.make_taxonomy, terms=[term.slug])],
                limit=1,
            )
            if related:
                makes.append(term_option(term))

        logger.debug(f"Found {len(makes)} makes")
        return makes

    def get_models(self, make: str) -> list[SelectOption]:
        """Get the models of published vehicles for a make."""
        cfg = self.config
        tax_query = [
            TaxClause(taxonomy=cfg.make_taxonomy, terms=[self.resolve_slug(cfg.make_taxonomy, make)]),
        ]
        return self._collect_terms(tax_query, cfg.model_taxonomy)

    def get_years(self, make: str, model: str) -> list[SelectOption]:
        """Get the model years of published vehicles for a make and model."""
        cfg = self.config
        tax_query = [
            TaxClause(taxonomy=cfg.make_taxonomy, terms=[self.resolve_slug(cfg.make_taxonomy, make)]),
            TaxClause(taxonomy=cfg.model_taxonomy, terms=[self.resolve_slug(cfg.model_taxonomy, model)]),
        ]
        return self._collect_terms(tax_query, cfg.year_taxonomy)

    def _collect_terms(self, tax_query: list[TaxClause], taxonomy: str) -> list[SelectOption]:
        """Union of ``taxonomy`` terms over matching vehicles, first occurrence wins."""
        posts = self.db.get_posts(self.config.vehicle_post_type, tax_query=tax_query, limit=-1)

        seen: Dict[str, SelectOption] = {}
        for post in posts:
            for term in self.db.get_post_terms(post.id, taxonomy):
                seen.setdefault(term.slug, term_option(term))

        return list(seen.values())

    # ------------------------------------------------------------------
    # Tire lookup
    # ------------------------------------------------------------------

    def get_tire_results(self, make: str, model: str = "", year: str = "") -> list[TireResult]:
        """Find tires for a vehicle selection.

        Args:
            make: Make slug or name (required)
            model: Optional model slug or name
            year: Optional model year

        Returns:
            Up to ``results_limit`` tires, or the demo tires when nothing
            matched and demo fallback is enabled
        """
        logger.info(f"Getting tire results for make: {make}, model: {model}, year: {year}")

        tires: list[TireResult] = []
        vehicles = self.find_vehicles(make, model, year)
        logger.info(f"Found {len(vehicles)} vehicles")

        if vehicles:
            products = self._get_tires_for_vehicles(vehicles)
            logger.info(f"Found {len(products)} tire products")
            tires = [self._tire_result(product) for product in products]

        if not tires and self.config.demo_fallback:
            logger.info("No tires found, returning demo data")
            tires = demo_tires()

        logger.info(f"Returning {len(tires)} tires")
        return tires

    def find_vehicles(self, make: str, model: str = "", year: str = "") -> list[Post]:
        """Find vehicle posts, trying each taxonomy pair and post type in turn."""
        cfg = self.config
        if not make:
            return []

        for make_tax, model_tax in cfg.taxonomy_pairs:
            tax_query = [TaxClause(taxonomy=make_tax, terms=[self.resolve_slug(make_tax, make)])]
            if model:
                tax_query.append(
                    TaxClause(taxonomy=model_tax, terms=[self.resolve_slug(model_tax, model)])
                )
            if year:
                tax_query.append(
                    TaxClause(
                        taxonomy=cfg.year_taxonomy,
                        terms=[self.resolve_slug(cfg.year_taxonomy, str(year))],
                    )
                )

            for post_type in cfg.vehicle_post_types:
                vehicles = self.db.get_posts(post_type, tax_query=tax_query, limit=-1)
                if vehicles:
                    logger.debug(
                        f"Found {len(vehicles)} vehicles using {make_tax}/{model_tax} and post_type: {post_type}"
                    )
                    return vehicles

        return []

    def _get_tires_for_vehicles(self, vehicles: list[Post]) -> list[Post]:
        """Find tire products for vehicles.

        Strategy:
        1. Products whose vehicle meta points at one of the vehicles
        2. Products sharing a make/model term with the vehicles
        3. Any published product, if catalog fallback is enabled
        """
        cfg = self.config
        vehicle_ids = [vehicle.id for vehicle in vehicles]
        common = {
            "limit": cfg.results_limit,
            "orderby": "title",
            "order": "ASC",
        }

        by_meta = self.db.get_posts(
            cfg.product_post_type,
            meta_query=[MetaClause(key=cfg.vehicle_meta_key, value=vehicle_ids, compare="IN")],
            **common,
        )
        if by_meta:
            logger.debug("Found tires via meta query")
            return by_meta

        for taxonomy in cfg.product_taxonomies:
            slugs = {
                term.slug
                for vehicle in vehicles
                for term in self.db.get_post_terms(vehicle.id, taxonomy)
            }
            if not slugs:
                continue

            by_tax = self.db.get_posts(
                cfg.product_post_type,
                tax_query=[TaxClause(taxonomy=taxonomy, terms=sorted(slugs))],
                **common,
            )
            # a vehicle stored as a product would otherwise match itself
            by_tax = [post for post in by_tax if post.id not in vehicle_ids]
            if by_tax:
                logger.debug(f"Found tires via taxonomy query using {taxonomy}")
                return by_tax

        if cfg.catalog_fallback:
            logger.debug("Using fallback to all products")
            return self.db.get_posts(cfg.product_post_type, **common)

        return []

    def _tire_result(self, product: Post) -> TireResult:
        meta = {key: self.db.get_post_meta(product.id, key) for key in PRODUCT_META_KEYS}
        return TireResult(
            id=product.id,
            title=product.title,
            size=meta["_tire_size"],
            type=meta["_tire_type"],
            price=self.prices.format(meta),
            image=product.thumbnail_url or "",
            availability=availability(meta["_stock_status"]),
            url=product.permalink or f"/?p={product.id}",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_slug(self, taxonomy: str, value: str) -> str:
        """Map user input to a term slug.

        Tries the exact slug, then the name (case-insensitive), then the
        slugified input, then the closest term name above the fuzzy
        threshold. A fuzzy candidate must carry the same numbers as the
        input, so "Sierra 2500" never lands on "Sierra 1500". Falls back to
        the slugified input.
        """
        value = (value or "").strip()
        if not value:
            return ""

        if self.db.get_term_by(taxonomy, "slug", value):
            return value

        term = self.db.get_term_by(taxonomy, "name", value)
        if term:
            return term.slug

        slug = sanitize_title(value)
        if slug != value and self.db.get_term_by(taxonomy, "slug", slug):
            return slug

        needle = value.lower()
        numbers = _NUMBER_RE.findall(needle)
        best_slug, best_score = None, 0.0
        for candidate in self.db.get_terms(taxonomy):
            name = candidate.name.lower()
            if _NUMBER_RE.findall(name) != numbers:
                continue
            similarity = fuzz.ratio(needle, name)
            if similarity > self.config.fuzzy_threshold and similarity > best_score:
                best_slug, best_score = candidate.slug, similarity

        if best_slug:
            logger.debug(f"Fuzzy match found: {value} -> {best_slug} ({best_score:.0f}%)")
            return best_slug

        return slug

    def log_search(self, search: Dict[str, str], user_ip: str = ""):
        """Record a search in the search log, if logging is enabled."""
        if not self.config.log_searches:
            return None
        return self.search_log.append(search, user_ip=user_ip)
