"""External artist metadata source used by enrichment."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional

from .models import Artist, ArtworkResult

logger = logging.getLogger(__name__)


class ArtistScraper(ABC):
    """
    Resolves external artist identifiers and fetches artist artwork.

    Implementations talk to a remote metadata service; both methods yield
    results as they become available so the caller can write each artist
    back to the catalog immediately.
    """

    @abstractmethod
    def resolve_ids(self, artists: Iterable[Artist]) -> Iterator[Optional[Artist]]:
        """
        Resolve the external identifier of each artist from its name.

        Yields:
            The artist with ``external_id`` filled in, or None when the
            artist could not be resolved
        """

    @abstractmethod
    def fetch_artworks(self, artists: Iterable[Artist], artwork_dir: str) -> Iterator[ArtworkResult]:
        """
        Fetch artwork for each artist.

        Yields:
            One ArtworkResult per artist; ``cover`` is None when nothing
            was found
        """

    def close(self) -> None:
        """Release sessions or other resources held by the scraper."""


class NullArtistScraper(ArtistScraper):
    """Offline scraper: resolves nothing and finds no artwork.

    Every artist still gets a result in the artwork phase, so the catalog's
    default cover is applied.
    """

    def resolve_ids(self, artists: Iterable[Artist]) -> Iterator[Optional[Artist]]:
        for _ in artists:
            yield None

    def fetch_artworks(self, artists: Iterable[Artist], artwork_dir: str) -> Iterator[ArtworkResult]:
        for artist in artists:
            yield ArtworkResult(artist=artist, cover=None)
