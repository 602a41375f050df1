"""Selector controller that chains make → model → year requests."""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from loguru import logger

from ..storage.models import SelectOption, TireResult
from ..utils.text import sanitize_title


class SelectorError(Exception):
    """The server answered a selector request with ``success: false``."""

    def __init__(self, action: str, message: Any):
        self.action = action
        self.message = message
        super().__init__(f"{action} failed: {message}")


@dataclass
class SelectorState:
    """Current selection and the options loaded for it."""

    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None

    makes: list[SelectOption] = field(default_factory=list)
    models: list[SelectOption] = field(default_factory=list)
    years: list[SelectOption] = field(default_factory=list)
    tires: list[TireResult] = field(default_factory=list)


class SelectorClient:
    """Drive the vehicle selector over HTTP.

    Choosing a make clears the model and year, loads the models and shows
    tires for the make alone. Choosing a model clears the year, loads the
    years and narrows the tires. Choosing a year completes the selection
    and yields the archive page path.
    """

    def __init__(self, base_url: str = "", http_client: Optional[httpx.AsyncClient] = None):
        """Initialize selector client.

        Args:
            base_url: API root, ignored when ``http_client`` is given
            http_client: Preconfigured client (e.g. bound to an ASGI app)
        """
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(base_url=base_url, timeout=30.0)
        self.state = SelectorState()
        self.ajax_url: Optional[str] = None
        self.nonce: Optional[str] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        if self._owns_client:
            await self.http.aclose()

    @property
    def visible_levels(self) -> int:
        """How many dropdowns the form shows for the current selection."""
        if self.state.model:
            return 3
        if self.state.make:
            return 2
        return 1

    async def _ensure_nonce(self):
        if self.nonce is not None:
            return
        response = await self.http.get("/nonce")
        response.raise_for_status()
        payload = response.json()
        self.ajax_url = payload["ajax_url"]
        self.nonce = payload["nonce"]

    async def _post(self, action: str, **fields: str) -> Any:
        await self._ensure_nonce()

        data = {"action": action, "nonce": self.nonce or ""}
        data.update({key: value for key, value in fields.items() if value is not None})

        response = await self.http.post("/ajax", data=data)
        if response.status_code == 403:
            raise SelectorError(action, "invalid nonce")
        response.raise_for_status()

        payload = response.json()
        if not payload.get("success"):
            raise SelectorError(action, payload.get("data"))
        return payload.get("data")

    async def load_makes(self) -> list[SelectOption]:
        data = await self._post("tpsf_get_makes")
        self.state.makes = [SelectOption(**item) for item in data]
        return self.state.makes

    async def load_models(self, make: str) -> list[SelectOption]:
        data = await self._post("tpsf_get_models", make=make)
        self.state.models = [SelectOption(**item) for item in data]
        return self.state.models

    async def load_years(self, make: str, model: str) -> list[SelectOption]:
        data = await self._post("tpsf_get_years", make=make, model=model)
        self.state.years = [SelectOption(**item) for item in data]
        return self.state.years

    async def load_tire_results(self, make: str, model: str = "") -> list[TireResult]:
        logger.debug(f"Loading tire results for: {make} {model}")
        data = await self._post("tpsf_get_tire_results", make=make, model=model)
        self.state.tires = [TireResult(**item) for item in data]
        return self.state.tires

    async def select_make(self, make: str) -> list[TireResult]:
        """Select a make; an empty value is ignored."""
        if not make:
            return self.state.tires

        self.state.make = make
        self.state.model = None
        self.state.year = None
        self.state.models = []
        self.state.years = []

        await self.load_models(make)
        return await self.load_tire_results(make, "")

    async def select_model(self, model: str) -> list[TireResult]:
        """Select a model; ignored without a model or a selected make."""
        if not model or not self.state.make:
            return self.state.tires

        self.state.model = model
        self.state.year = None
        self.state.years = []

        await self.load_years(self.state.make, model)
        return await self.load_tire_results(self.state.make, model)

    def select_year(self, year: str) -> Optional[str]:
        """Select a year and return the archive path for the full selection."""
        if not year or not self.state.make or not self.state.model:
            return None

        self.state.year = year
        return archive_path(self.state.make, self.state.model, year)

    def reset(self):
        """Clear the selection, keeping the loaded makes."""
        makes = self.state.makes
        self.state = SelectorState(makes=makes)


def archive_path(make: str, model: str, year: str) -> str:
    """Archive URL for a selection; each segment is reduced to a slug."""
    parts = (sanitize_title(str(part)) for part in (make, model, year))
    return "/tires-for/{}/{}/{}/".format(*parts)
