"""Deterministic extractors for club sites with stable markup.

Each module in this package handles one site layout and is selected by the
URL classifier through its ``site_id`` (the module name).

Convention
----------
Every module must expose a synchronous ``extract`` function::

    def extract(html: str, page_url: str, club_id: str, default_image: str) -> list[dict]:
        ...

- ``html``: the rendered page HTML.
- ``page_url``: the page URL, used as ``eventURL`` and to resolve relative links.
- ``club_id``: attached to every event as ``clubID``.
- ``default_image``: the club banner, used when an event has no image.

It returns raw event dicts (``title``, ``startDate``, ``description``,
``eventURL``, ``image``, ``clubID``) that go through the normal normalizer.
No LLM call is made on this path.
"""

import importlib
from typing import Callable

SiteExtractor = Callable[[str, str, str, str], list[dict]]


def get_extractor(site_id: str) -> SiteExtractor:
    """
    Load the ``extract`` function of ``clubevents.sites.<site_id>``.

    Raises:
        LookupError: no such module, or it has no ``extract`` function.
    """
    module_name = f"{__name__}.{site_id}"
    try:
        mod = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise LookupError(f"No site extractor named {site_id!r}") from e

    extract_fn = getattr(mod, "extract", None)
    if extract_fn is None:
        raise LookupError(f"Site module {module_name} has no extract() function")
    return extract_fn
