"""
Paged collection results.

A PagedResponseEnvelope is one page of a collection plus the continuation
link for the next page (or the delta link for the next change set). It holds
the page's ResponseEnvelope by composition and never fetches anything itself.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from pydantic import ValidationError

from ..config.settings import get_settings
from ..deserializers import type_adapter_for
from ..exceptions import DeserializationError
from .response import ResponseEnvelope

logger = logging.getLogger(__name__)

T = TypeVar('T')

NEXT_LINK_KEYS = ('@odata.nextLink', 'nextLink')
DELTA_LINK_KEYS = ('@odata.deltaLink', 'deltaLink')


def _first_link(page: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = page.get(key)
        if value:
            return str(value)
    return None


@dataclass(frozen=True)
class PagedResponseEnvelope(Generic[T]):
    """One page of items with its continuation link.

    At most one of next_link / delta_link is set; neither means the
    collection has been read to the end.
    """
    envelope: ResponseEnvelope
    items: Tuple[T, ...] = ()
    next_link: Optional[str] = None
    delta_link: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))
        if self.next_link and self.delta_link:
            raise ValueError("A page carries either a next link or a delta link, not both")

    @property
    def status_code(self) -> int:
        return self.envelope.status_code

    @property
    def headers(self):
        return self.envelope.headers

    @property
    def raw_body(self) -> bytes:
        return self.envelope.raw_body

    @property
    def is_last_page(self) -> bool:
        return not self.next_link and not self.delta_link

    @property
    def continuation_link(self) -> Optional[str]:
        """Whichever link the pager should follow next, if any."""
        return self.next_link or self.delta_link

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @classmethod
    def from_envelope(cls, envelope: ResponseEnvelope, item_type: Any = dict, deserializer: Any = None,
                      items_key: Optional[str] = None,
                      next_link_keys: Sequence[str] = NEXT_LINK_KEYS,
                      delta_link_keys: Sequence[str] = DELTA_LINK_KEYS) -> 'PagedResponseEnvelope':
        """Parse a page body of the form ``{"value": [...], "@odata.nextLink": "..."}``.

        The page object is produced by the envelope's deserializer (or the
        override) as a dict; the items are then validated as item_type.

        Raises:
            DeserializationError: The body is not an object with a list under
                items_key (error bodies included), the items do not match
                item_type, or both links are present
        """
        items_key = items_key or get_settings().page_items_key
        page = envelope.deserialize_as(Dict[str, Any], deserializer)
        if page is None:
            # Bodyless response: an empty, final page
            return cls(envelope=envelope)

        def fail(message: str, cause: Exception = None) -> DeserializationError:
            return DeserializationError(
                message, raw_body=envelope.raw_body, content_type_hint=envelope.content_type_hint,
                target_type=item_type, cause=cause
            )

        if not isinstance(page, Mapping):
            raise fail(f"Page body must be an object, got {type(page).__name__}")
        if items_key not in page:
            raise fail(f"Page has no {items_key!r} field (HTTP {envelope.status_code})")

        raw_items = page[items_key]
        if not isinstance(raw_items, list):
            raise fail(f"Page field {items_key!r} must be a list, got {type(raw_items).__name__}")

        try:
            items = type_adapter_for(List[item_type]).validate_python(raw_items)
        except ValidationError as e:
            raise fail(f"Page items do not match {getattr(item_type, '__name__', item_type)}: "
                       f"{e.error_count()} validation error(s)", e) from e

        next_link = _first_link(page, next_link_keys)
        delta_link = _first_link(page, delta_link_keys)
        if next_link and delta_link:
            raise fail("Page carries both a next link and a delta link")

        logger.debug(f"Parsed page of {len(items)} item(s), "
                     f"next={'yes' if next_link else 'no'}, delta={'yes' if delta_link else 'no'}")
        return cls(envelope=envelope, items=items, next_link=next_link, delta_link=delta_link)
