import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import aiohttp

from ..api.catalog import CatalogError
from ..api.service import ImportService
from ..fetchers.content import is_valid_url
from ..matching.venues import suggest_venues
from ..models import (
    BatchError,
    CreatedEvent,
    ExtractedEvent,
    FetchResult,
    PageMetadata,
    VenueOption,
    VenueRef,
)
from . import actions as a
from .reducer import failed_events, reduce
from .state import UNNAMED_EVENT, WizardState, WizardStep

INVALID_URL = "Please enter a valid URL"
EMPTY_PASTE = "Please paste some content"
FETCH_FAILED = "Failed to fetch page"
FETCH_FAILED_TRY_PASTE = "Failed to fetch page. Try pasting the content manually."
NO_EVENTS_FOUND = "No events found. Please add event data manually."
EXTRACT_FAILED = "Failed to extract event data. Please fill in manually."
NOTHING_SELECTED = "Please select at least one event to import"
NAME_REQUIRED = "Event name is required"
PROMOTER_REQUIRED = "Please select a promoter"
SAVE_FAILED = "Failed to save"
NETWORK_ERROR = "Network error"

Listener = Callable[[WizardState, Any], None]


class ImportWizard:
    """
    Drives one URL import from page fetch to saved events.

    All state lives in ``self.state`` and changes only through ``dispatch``.
    At most one fetch/extract sequence runs at a time; starting another, or
    calling ``cancel_fetch``/``close``, cancels the one in flight.
    """

    def __init__(self, service: ImportService, state: Optional[WizardState] = None) -> None:
        self.service = service
        self.state = state or WizardState()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._listeners: List[Listener] = []
        self._active_task: Optional[asyncio.Task] = None
        self._reference_loaded = False

    def dispatch(self, action: Any) -> WizardState:
        self.state = reduce(self.state, action)
        for listener in self._listeners:
            listener(self.state, action)
        return self.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    @property
    def similar_venues(self) -> List[VenueRef]:
        data = self.state.extracted_data
        suggestions = suggest_venues(data.venue_name, data.venue_city, self.state.venues)
        return [suggestion.venue for suggestion in suggestions]

    async def load_reference_data(self) -> None:
        """Load the venue and promoter lists once per wizard."""
        if self._reference_loaded:
            return
        try:
            venues, promoters = await asyncio.gather(
                self.service.list_venues(), self.service.list_promoters()
            )
        except CatalogError as e:
            self.logger.error(f"Failed to fetch venues/promoters: {e}")
            return
        self._reference_loaded = True
        self.dispatch(a.SetReferenceData(venues, promoters))

    # --- URL input ---

    def set_url(self, url: str) -> None:
        self.dispatch(a.SetUrl(url))

    def set_manual_paste(self, manual_paste: bool) -> None:
        self.dispatch(a.SetManualPaste(manual_paste))

    def set_pasted_content(self, content: str) -> None:
        self.dispatch(a.SetPastedContent(content))

    async def handle_fetch(self) -> None:
        state = self.state
        if not state.manual_paste and not is_valid_url(state.url):
            self.dispatch(a.SetError(INVALID_URL))
            return
        if state.manual_paste and not state.pasted_content.strip():
            self.dispatch(a.SetError(EMPTY_PASTE))
            return
        self.dispatch(a.SetError(""))

        await self._run_exclusive(
            self._fetch_sequence(state.url, state.manual_paste, state.pasted_content)
        )

    def cancel_fetch(self) -> None:
        self._cancel_active()
        self.dispatch(a.SetStep(WizardStep.URL_INPUT))

    async def re_extract(self) -> None:
        if not self.state.fetched_content:
            return
        self.dispatch(a.SetError(""))
        self.dispatch(a.SetStep(WizardStep.EXTRACTING))
        await self._run_exclusive(
            self._extract(self.state.fetched_content, self.state.fetched_metadata)
        )

    async def _run_exclusive(self, sequence: Awaitable[None]) -> None:
        self._cancel_active()
        task = asyncio.ensure_future(sequence)
        self._active_task = task
        try:
            await asyncio.wait([task])
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._active_task is task:
                self._active_task = None

        if task.cancelled():
            self.logger.debug("Fetch/extract sequence cancelled")
            return
        task.result()

    def _cancel_active(self) -> None:
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None

    async def _fetch_sequence(self, url: str, manual_paste: bool, pasted_content: str) -> None:
        duplicate_check = None
        if not manual_paste and url:
            duplicate_check = asyncio.ensure_future(self._check_duplicate(url))
        try:
            await self._fetch_and_extract(url, manual_paste, pasted_content)
            if duplicate_check is not None:
                await duplicate_check
        finally:
            if duplicate_check is not None and not duplicate_check.done():
                duplicate_check.cancel()

    async def _check_duplicate(self, url: str) -> None:
        try:
            result = await self.service.check_duplicate(url)
        except CatalogError as e:
            self.logger.warning(f"Duplicate check failed for {url}: {e}")
            return
        if result.is_duplicate and result.existing_event and self.state.url == url:
            self.dispatch(a.SetDuplicateWarning(result.existing_event))

    async def _fetch_and_extract(self, url: str, manual_paste: bool, pasted_content: str) -> None:
        if manual_paste:
            result = self.service.from_pasted(pasted_content)
            if not result.success:
                self.dispatch(a.SetError(result.error or EMPTY_PASTE))
                return
        else:
            self.dispatch(a.SetStep(WizardStep.FETCHING))
            try:
                result = await self.service.fetch_url(url)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.warning(f"Fetch of {url} failed: {e}")
                result = FetchResult.failure(FETCH_FAILED_TRY_PASTE)
            if not result.success:
                self.dispatch(a.SetError(result.error or FETCH_FAILED))
                self.dispatch(a.SetStep(WizardStep.URL_INPUT))
                return

        content = result.content or ""
        self.dispatch(a.FetchSuccess(content, result.metadata))
        self.dispatch(a.SetStep(WizardStep.EXTRACTING))
        await self._extract(content, result.metadata)

    async def _extract(self, content: str, metadata: PageMetadata) -> None:
        try:
            result = await self.service.extract(content, self.state.url or None, metadata)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning(f"Extraction request failed: {e}")
            self.dispatch(a.ExtractFail(EXTRACT_FAILED))
            return

        if not result.success or not result.events:
            self.dispatch(a.ExtractFail(result.error or NO_EVENTS_FOUND))
            return

        if len(result.events) == 1:
            event = result.events[0]
            self.dispatch(a.ExtractSingle(event, result.confidence))
            self.dispatch(
                a.LoadEventForReview(event, result.confidence.get(event.extract_id, {}))
            )
        else:
            self.dispatch(a.ExtractSuccess(result.events, result.confidence))

    # --- Event selection ---

    def toggle_event(self, event_id: str) -> None:
        self.dispatch(a.ToggleEventSelection(event_id))

    def toggle_select_all(self) -> None:
        self.dispatch(a.ToggleSelectAll())

    def select_events(self, event_ids: Iterable[str]) -> None:
        self.dispatch(a.SetSelectedEventIds(frozenset(event_ids)))

    def proceed_to_review(self) -> None:
        selected = self.state.selected_events()
        if not selected:
            self.dispatch(a.SetError(NOTHING_SELECTED))
            return
        self.dispatch(a.ProceedToReview(selected, self.state.confidence_for(selected[0])))

    # --- Review ---

    def update_event(self, **changes: Any) -> None:
        self.dispatch(a.UpdateExtractedData(changes))

    def set_dates_confirmed(self, confirmed: bool) -> None:
        self.dispatch(a.SetDatesConfirmed(confirmed))

    def _require_name(self) -> bool:
        if not (self.state.extracted_data.name or "").strip():
            self.dispatch(a.SetError(NAME_REQUIRED))
            return False
        self.dispatch(a.SetError(""))
        return True

    def go_to_venue(self) -> None:
        if not self._require_name():
            return

        if not self.state.events_to_import:
            manual = ExtractedEvent.from_data(
                self.state.extracted_data, extract_id=f"manual-{uuid.uuid4().hex[:12]}"
            )
            self.dispatch(a.SetEventsToImport([manual]))
        else:
            self.dispatch(a.SaveCurrentEventEdits())

        state = self.state
        data = state.extracted_data
        if data.venue_name and not state.new_venue_name and not state.selected_venue_id:
            self.dispatch(
                a.SetNewVenue(
                    name=data.venue_name,
                    address=data.venue_address or "",
                    city=data.venue_city or "",
                    state=data.venue_state or "",
                )
            )
        self.dispatch(a.SetStep(WizardStep.VENUE))

    def _navigate(self, index: int) -> None:
        event = self.state.events_to_import[index]
        self.dispatch(a.NavigateEvent(index, event, self.state.confidence_for(event)))

    def go_to_next_event(self) -> None:
        """Advance to the next selected event, or on to the venue step after the last."""
        if not self._require_name():
            return
        self.dispatch(a.SaveCurrentEventEdits())

        state = self.state
        if state.current_event_index < len(state.events_to_import) - 1:
            self._navigate(state.current_event_index + 1)
        else:
            self.go_to_venue()

    def go_to_previous_event(self) -> None:
        self.dispatch(a.SaveCurrentEventEdits())

        state = self.state
        if state.current_event_index > 0:
            self._navigate(state.current_event_index - 1)
        elif len(state.extracted_events) > 1:
            self.dispatch(a.SetStep(WizardStep.SELECT_EVENTS))
        else:
            self.dispatch(a.SetStep(WizardStep.URL_INPUT))

    # --- Venue ---

    def select_existing_venue(self, venue_id: str) -> None:
        self.dispatch(a.SetSelectedVenueId(venue_id))

    def set_new_venue(self, name: str, address: str = "", city: str = "", state: str = "") -> None:
        self.dispatch(a.SetNewVenue(name=name, address=address, city=city, state=state))

    def set_new_venue_name(self, name: str) -> None:
        self.dispatch(a.SetNewVenueName(name))

    def set_new_venue_field(self, field: str, value: str) -> None:
        self.dispatch(a.SetNewVenueField(field, value))

    def clear_venue(self) -> None:
        self.dispatch(a.SetSelectedVenueId(""))
        self.dispatch(a.SetNewVenue(name=""))

    def go_back_from_venue(self) -> None:
        last_index = len(self.state.events_to_import) - 1
        if last_index >= 0:
            self._navigate(last_index)
        self.dispatch(a.SetStep(WizardStep.REVIEW))

    def go_to_promoter(self) -> None:
        state = self.state
        if state.selected_venue_id:
            option = VenueOption.existing(state.selected_venue_id)
        elif state.new_venue_name.strip():
            option = VenueOption.new(
                state.new_venue_name.strip(),
                address=state.new_venue_address.strip(),
                city=state.new_venue_city.strip(),
                state=state.new_venue_state.strip(),
            )
        else:
            option = VenueOption.none()
        self.dispatch(a.SetVenueOption(option))
        self.dispatch(a.SetStep(WizardStep.PROMOTER))

    # --- Promoter / preview ---

    def select_promoter(self, promoter_id: str) -> None:
        self.dispatch(a.SetSelectedPromoterId(promoter_id))

    def go_to_preview(self) -> None:
        if not self.state.selected_promoter_id:
            self.dispatch(a.SetError(PROMOTER_REQUIRED))
            return
        self.dispatch(a.SetError(""))
        self.dispatch(a.SetStep(WizardStep.PREVIEW))

    def go_back_from_promoter(self) -> None:
        self.dispatch(a.SetStep(WizardStep.VENUE))

    def go_back_from_preview(self) -> None:
        self.dispatch(a.SetStep(WizardStep.PROMOTER))

    # --- Saving ---

    async def save(self) -> None:
        if not self.state.selected_promoter_id:
            self.dispatch(a.SetError(PROMOTER_REQUIRED))
            return
        await self.save_events(self.state.events_to_import, keep_created=False)

    async def retry_failed(self) -> None:
        failed = failed_events(self.state)
        if not failed:
            return
        self.dispatch(a.RetryFailed())
        await self.save_events(failed, keep_created=True)

    def build_import_payload(
        self, event: ExtractedEvent, venue_option: VenueOption
    ) -> Dict[str, Any]:
        state = self.state
        event_payload = event.to_dict()
        event_payload["datesConfirmed"] = state.dates_confirmed
        return {
            "event": event_payload,
            "venueOption": venue_option.to_dict(),
            "promoterId": state.selected_promoter_id,
            "sourceUrl": state.url or None,
            "jsonLd": state.fetched_json_ld,
        }

    async def save_events(self, events: List[ExtractedEvent], keep_created: bool) -> None:
        """
        Save events one at a time, recording each outcome.

        Sequential on purpose: once an item creates a new venue, every later
        item (and any retry) links to that venue instead of creating another.
        """
        self.dispatch(a.SetError(""))
        self.dispatch(a.SetStep(WizardStep.SAVING))

        created: List[CreatedEvent] = list(self.state.created_events) if keep_created else []
        batch_errors: List[BatchError] = []
        venue_option = self.state.venue_option
        total = len(events)

        for index, event in enumerate(events, start=1):
            self.dispatch(a.SetSavingProgress(index, total))
            name = event.name or UNNAMED_EVENT
            payload = self.build_import_payload(event, venue_option)
            try:
                result = await self.service.import_event(payload)
            except (CatalogError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.error(f"Error saving {name}: {e}")
                batch_errors.append(BatchError(name, NETWORK_ERROR))
                continue

            if result.success and result.event:
                created.append(CreatedEvent(id=result.event.id, slug=result.event.slug, name=name))
                if venue_option.type == "new" and result.venue_id:
                    venue_option = VenueOption.existing(result.venue_id)
            else:
                self.logger.error(f"Failed to save {name}: {result.error or SAVE_FAILED}")
                batch_errors.append(BatchError(name, result.error or SAVE_FAILED))

        if venue_option != self.state.venue_option:
            self.dispatch(a.SetVenueOption(venue_option))
        self.logger.info(f"Saved {total - len(batch_errors)} of {total} events")
        self.dispatch(a.SaveComplete(created, batch_errors))

    # --- Lifecycle ---

    def reset(self) -> None:
        self._cancel_active()
        self.dispatch(a.Reset())

    def close(self) -> None:
        self._cancel_active()
