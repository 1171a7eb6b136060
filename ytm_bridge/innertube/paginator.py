"""
Continuation-token pagination over playlist browse responses.

A collection run starts from a seed response (the first browse page) and
keeps fetching continuation pages until one of these guards trips:

    empty-pages      Two consecutive fetched pages parsed zero tracks
    max-tracks       The accumulated track count reached max_tracks
    max-pages        max_pages continuation pages were fetched
    no-continuation  The last page carried no continuation token

Exactly one stop reason is recorded per run, in the priority order above.

Root Fallbacks (collect_with_fallbacks):
    When a run yields nothing at all:
        - Liked Music ("LM"): the preferred tab of the seed response is tried,
          first from its embedded content, then by browsing the tab itself
        - Any other playlist: the run is repeated once against the browse id
          with the "VL" prefix toggled
    A fallback result replaces the original only if it found tracks.
"""

from collections.abc import Callable
from typing import Any

from ytm_bridge.core.logger import get_logger
from ytm_bridge.innertube.credentials import CredentialBundle
from ytm_bridge.innertube.executor import InnertubeClient
from ytm_bridge.innertube.extractor import (
    dedupe_tracks,
    extract_continuation_token,
    extract_metadata_counts,
    extract_reported_count,
    extract_tabs,
    parse_tracks,
    pick_preferred_tab,
    toggle_vl_prefix,
)
from ytm_bridge.innertube.models import (
    LIKED_SONGS_ID,
    CollectionResult,
    Diagnostics,
    Track,
)


logger = get_logger(__name__)

STOP_EMPTY_PAGES = "empty-pages"
STOP_MAX_TRACKS = "max-tracks"
STOP_MAX_PAGES = "max-pages"
STOP_NO_CONTINUATION = "no-continuation"

# Consecutive empty continuation pages that end a run
EMPTY_PAGE_LIMIT = 2

ProgressCallback = Callable[[int, int], None]


class PaginationEngine:
    """
    Collects every track of one playlist for one account.

    All state of a run is local to collect(), so an engine can run several
    collections (the root fallbacks do) without leaking counters between them.

    Attributes:
        client: Executor used for continuation and fallback requests.
        bundle: Credentials of the account.
        auth_user: Account index resolved by the seed request.
        max_tracks: Track ceiling for one run.
        max_pages: Continuation fetch ceiling for one run.
        dedupe: Drop repeated video ids when True.
        on_page: Optional callback(pages, track_count) after every page.
    """

    def __init__(
        self,
        client: InnertubeClient,
        bundle: CredentialBundle,
        auth_user: str,
        max_tracks: int,
        max_pages: int,
        dedupe: bool = True,
        on_page: ProgressCallback | None = None
    ) -> None:
        self.client = client
        self.bundle = bundle
        self.auth_user = auth_user
        self.max_tracks = max_tracks
        self.max_pages = max_pages
        self.dedupe = dedupe
        self.on_page = on_page

    def _apply_dedupe(self, tracks: list[Track]) -> list[Track]:
        return dedupe_tracks(tracks) if self.dedupe else tracks

    def _report(self, pages: int, track_count: int) -> None:
        if self.on_page is not None:
            self.on_page(pages, track_count)

    def collect(self, seed: Any, browse_id: str) -> CollectionResult:
        """
        Run one collection starting from a seed response.

        Args:
            seed: First page (full browse response or embedded tab content).
            browse_id: Browse id the seed came from, sent with continuation
                       requests only when the bare token is rejected.

        Returns:
            CollectionResult. tracks holds at most max_tracks entries while
            count is the full accumulated total.
        """
        first_page = parse_tracks(seed)
        diagnostics = Diagnostics(
            reported_total=extract_reported_count(seed),
            metadata_counts=extract_metadata_counts(seed),
        )
        diagnostics.merge(first_page.diagnostics)

        tracks = self._apply_dedupe(first_page.tracks)
        missing_title = first_page.missing_title
        missing_video_id = first_page.missing_video_id
        token = extract_continuation_token(seed)
        pages = 1
        fetched = 0
        empty_pages = 0
        stop_reason = None

        self._report(pages, len(tracks))

        while token and len(tracks) < self.max_tracks and fetched < self.max_pages:
            data = self.client.fetch_continuation(token, self.bundle, self.auth_user, browse_id)
            page = parse_tracks(data)

            diagnostics.merge(page.diagnostics)
            tracks = self._apply_dedupe(tracks + page.tracks)
            missing_title += page.missing_title
            missing_video_id += page.missing_video_id
            token = extract_continuation_token(data)
            pages += 1
            fetched += 1

            logger.debug(f"{browse_id}: page {pages} parsed {len(page.tracks)} tracks")
            self._report(pages, len(tracks))

            empty_pages = 0 if page.tracks else empty_pages + 1
            if empty_pages >= EMPTY_PAGE_LIMIT:
                stop_reason = STOP_EMPTY_PAGES
                break

        if stop_reason is None:
            if len(tracks) >= self.max_tracks:
                stop_reason = STOP_MAX_TRACKS
            elif fetched >= self.max_pages:
                stop_reason = STOP_MAX_PAGES
            else:
                stop_reason = STOP_NO_CONTINUATION
        diagnostics.stop_reason = stop_reason

        logger.debug(
            f"{browse_id}: {len(tracks)} tracks in {pages} pages, stopped on {stop_reason}"
        )

        return CollectionResult(
            tracks=tracks[:self.max_tracks],
            count=len(tracks),
            pages=pages,
            continuation=token,
            missing_title=missing_title,
            missing_video_id=missing_video_id,
            diagnostics=diagnostics,
            truncated=bool(token) and len(tracks) >= self.max_tracks,
            browse_id=browse_id,
        )

    def _browse(self, body: dict[str, Any]) -> Any:
        return self.client.request("browse", body, self.bundle, self.auth_user)

    def _collect_from_preferred_tab(self, seed: Any, browse_id: str) -> CollectionResult | None:
        tab = pick_preferred_tab(extract_tabs(seed))
        if tab is None:
            return None

        tab_browse_id = tab.browse_id or browse_id

        if tab.content:
            result = self.collect(tab.content, tab_browse_id)
            if result.tracks:
                return result

        if tab.params or tab.browse_id:
            body = {"browseId": tab_browse_id}
            if tab.params:
                body["params"] = tab.params
            result = self.collect(self._browse(body), tab_browse_id)
            if result.tracks:
                return result

        return None

    def collect_with_fallbacks(self, seed: Any, browse_id: str) -> CollectionResult:
        """
        collect(), plus the root fallbacks when the first run is empty.

        Args:
            seed: Response of the initial browse request.
            browse_id: Normalised browse id of that request ("LM" or "VL...").
        """
        result = self.collect(seed, browse_id)
        if result.tracks:
            return result

        if browse_id == LIKED_SONGS_ID:
            logger.info("Liked Music returned no tracks, trying its songs tab")
            fallback = self._collect_from_preferred_tab(seed, browse_id)
        else:
            alternate_id = toggle_vl_prefix(browse_id)
            logger.info(f"{browse_id} returned no tracks, retrying as {alternate_id}")
            fallback = self.collect(self._browse({"browseId": alternate_id}), alternate_id)

        if fallback is not None and fallback.tracks:
            return fallback

        logger.warning(f"No tracks found for {browse_id}")
        return result
