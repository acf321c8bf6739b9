"""Pure state transitions for the import wizard.

``reduce(state, action)`` never mutates its input; it returns either the
same state (for a no-op) or a fresh copy with the action applied.
"""

from dataclasses import replace
from typing import Any, Callable, Dict, List, Type

from ..models import ExtractedEvent, ExtractedEventData, VenueOption
from ..models.event import DATA_FIELDS
from . import actions as a
from .state import UNNAMED_EVENT, SavingProgress, WizardState, WizardStep

NEW_VENUE_FIELDS = {
    "address": "new_venue_address",
    "city": "new_venue_city",
    "state": "new_venue_state",
}

Handler = Callable[[WizardState, Any], WizardState]
_HANDLERS: Dict[Type, Handler] = {}


def handles(action_type: Type) -> Callable[[Handler], Handler]:
    def register(func: Handler) -> Handler:
        _HANDLERS[action_type] = func
        return func

    return register


def reduce(state: WizardState, action: Any) -> WizardState:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise ValueError(f"Unknown wizard action: {type(action).__name__}")
    return handler(state, action)


def _load_event(
    state: WizardState,
    event: ExtractedEventData,
    confidence: Dict[str, str],
    **changes: Any,
) -> WizardState:
    """Show ``event`` in the review form and pre-fill the venue step from it."""
    return replace(
        state,
        extracted_data=event.copy_data(),
        confidence=dict(confidence),
        dates_confirmed=True,
        new_venue_name=event.venue_name or "",
        new_venue_address=event.venue_address or "",
        new_venue_city=event.venue_city or "",
        new_venue_state=event.venue_state or "",
        selected_venue_id="",
        venue_option=VenueOption.none(),
        **changes,
    )


@handles(a.SetStep)
def _set_step(state: WizardState, action: a.SetStep) -> WizardState:
    return replace(state, step=action.step)


@handles(a.SetError)
def _set_error(state: WizardState, action: a.SetError) -> WizardState:
    return replace(state, error=action.error)


@handles(a.SetUrl)
def _set_url(state: WizardState, action: a.SetUrl) -> WizardState:
    return replace(state, url=action.url, duplicate_warning=None)


@handles(a.SetDuplicateWarning)
def _set_duplicate_warning(state: WizardState, action: a.SetDuplicateWarning) -> WizardState:
    return replace(state, duplicate_warning=action.warning)


@handles(a.SetManualPaste)
def _set_manual_paste(state: WizardState, action: a.SetManualPaste) -> WizardState:
    return replace(
        state,
        manual_paste=action.manual_paste,
        pasted_content=state.pasted_content if action.manual_paste else "",
    )


@handles(a.SetPastedContent)
def _set_pasted_content(state: WizardState, action: a.SetPastedContent) -> WizardState:
    return replace(state, pasted_content=action.pasted_content)


@handles(a.FetchSuccess)
def _fetch_success(state: WizardState, action: a.FetchSuccess) -> WizardState:
    return replace(
        state,
        fetched_content=action.content,
        fetched_metadata=action.metadata,
        fetched_json_ld=action.metadata.json_ld,
    )


@handles(a.ExtractSuccess)
def _extract_success(state: WizardState, action: a.ExtractSuccess) -> WizardState:
    return replace(
        state,
        extracted_events=list(action.events),
        event_confidence=dict(action.confidence),
        selected_event_ids=frozenset(e.extract_id for e in action.events),
        current_event_index=0,
        events_to_import=[],
        step=WizardStep.SELECT_EVENTS,
    )


@handles(a.ExtractSingle)
def _extract_single(state: WizardState, action: a.ExtractSingle) -> WizardState:
    event = action.event
    return replace(
        state,
        extracted_events=[event],
        event_confidence=dict(action.confidence),
        selected_event_ids=frozenset([event.extract_id]),
        events_to_import=[event],
        current_event_index=0,
        step=WizardStep.REVIEW,
    )


@handles(a.ExtractFail)
def _extract_fail(state: WizardState, action: a.ExtractFail) -> WizardState:
    return replace(
        state,
        error=action.error,
        extracted_events=[],
        event_confidence={},
        selected_event_ids=frozenset(),
        events_to_import=[],
        current_event_index=0,
        step=WizardStep.REVIEW,
    )


@handles(a.SetSelectedEventIds)
def _set_selected_event_ids(state: WizardState, action: a.SetSelectedEventIds) -> WizardState:
    return replace(state, selected_event_ids=frozenset(action.ids))


@handles(a.ToggleEventSelection)
def _toggle_event_selection(state: WizardState, action: a.ToggleEventSelection) -> WizardState:
    return replace(state, selected_event_ids=state.selected_event_ids ^ {action.event_id})


@handles(a.ToggleSelectAll)
def _toggle_select_all(state: WizardState, action: a.ToggleSelectAll) -> WizardState:
    all_ids = frozenset(e.extract_id for e in state.extracted_events)
    if len(state.selected_event_ids) == len(state.extracted_events):
        return replace(state, selected_event_ids=frozenset())
    return replace(state, selected_event_ids=all_ids)


@handles(a.LoadEventForReview)
def _load_event_for_review(state: WizardState, action: a.LoadEventForReview) -> WizardState:
    return _load_event(state, action.event, action.confidence)


@handles(a.UpdateExtractedData)
def _update_extracted_data(state: WizardState, action: a.UpdateExtractedData) -> WizardState:
    unknown = set(action.changes) - set(DATA_FIELDS)
    if unknown:
        raise ValueError(f"Unknown event fields: {sorted(unknown)}")
    return replace(state, extracted_data=replace(state.extracted_data, **action.changes))


@handles(a.SetDatesConfirmed)
def _set_dates_confirmed(state: WizardState, action: a.SetDatesConfirmed) -> WizardState:
    return replace(state, dates_confirmed=action.confirmed)


@handles(a.ProceedToReview)
def _proceed_to_review(state: WizardState, action: a.ProceedToReview) -> WizardState:
    if not action.selected:
        return state
    selected = [replace(event) for event in action.selected]
    return _load_event(
        state,
        selected[0],
        action.first_event_confidence,
        error="",
        events_to_import=selected,
        current_event_index=0,
        step=WizardStep.REVIEW,
    )


@handles(a.SaveCurrentEventEdits)
def _save_current_event_edits(state: WizardState, action: a.SaveCurrentEventEdits) -> WizardState:
    current = state.current_event
    if current is None:
        return state
    updated = list(state.events_to_import)
    updated[state.current_event_index] = ExtractedEvent.from_data(
        state.extracted_data, extract_id=current.extract_id, selected=current.selected
    )
    return replace(state, events_to_import=updated)


@handles(a.NavigateEvent)
def _navigate_event(state: WizardState, action: a.NavigateEvent) -> WizardState:
    return _load_event(state, action.event, action.confidence, current_event_index=action.index)


@handles(a.SetEventsToImport)
def _set_events_to_import(state: WizardState, action: a.SetEventsToImport) -> WizardState:
    return replace(state, events_to_import=list(action.events))


@handles(a.SetVenueOption)
def _set_venue_option(state: WizardState, action: a.SetVenueOption) -> WizardState:
    return replace(state, venue_option=action.option)


@handles(a.SetSelectedVenueId)
def _set_selected_venue_id(state: WizardState, action: a.SetSelectedVenueId) -> WizardState:
    if not action.venue_id:
        return replace(state, selected_venue_id="")
    return replace(
        state,
        selected_venue_id=action.venue_id,
        new_venue_name="",
        new_venue_address="",
        new_venue_city="",
        new_venue_state="",
    )


@handles(a.SetNewVenue)
def _set_new_venue(state: WizardState, action: a.SetNewVenue) -> WizardState:
    return replace(
        state,
        new_venue_name=action.name,
        new_venue_address=action.address,
        new_venue_city=action.city,
        new_venue_state=action.state,
        selected_venue_id="" if action.name else state.selected_venue_id,
    )


@handles(a.SetNewVenueName)
def _set_new_venue_name(state: WizardState, action: a.SetNewVenueName) -> WizardState:
    return replace(
        state,
        new_venue_name=action.name,
        selected_venue_id="" if action.name else state.selected_venue_id,
    )


@handles(a.SetNewVenueField)
def _set_new_venue_field(state: WizardState, action: a.SetNewVenueField) -> WizardState:
    if action.field not in NEW_VENUE_FIELDS:
        raise ValueError(
            f"Invalid venue field '{action.field}'. "
            f"Must be one of: {sorted(NEW_VENUE_FIELDS)}"
        )
    return replace(state, **{NEW_VENUE_FIELDS[action.field]: action.value})


@handles(a.SetSelectedPromoterId)
def _set_selected_promoter_id(state: WizardState, action: a.SetSelectedPromoterId) -> WizardState:
    return replace(state, selected_promoter_id=action.promoter_id)


@handles(a.SetReferenceData)
def _set_reference_data(state: WizardState, action: a.SetReferenceData) -> WizardState:
    return replace(state, venues=list(action.venues), promoters=list(action.promoters))


@handles(a.SetSavingProgress)
def _set_saving_progress(state: WizardState, action: a.SetSavingProgress) -> WizardState:
    return replace(state, saving_progress=SavingProgress(action.current, action.total))


@handles(a.SaveComplete)
def _save_complete(state: WizardState, action: a.SaveComplete) -> WizardState:
    return replace(
        state,
        created_events=list(action.created),
        batch_errors=list(action.batch_errors),
        error="",
        saving_progress=None,
        step=WizardStep.SUCCESS,
    )


@handles(a.RetryFailed)
def _retry_failed(state: WizardState, action: a.RetryFailed) -> WizardState:
    failed = failed_events(state)
    if not failed:
        return state
    return replace(
        state,
        events_to_import=failed,
        batch_errors=[],
        error="",
        step=WizardStep.SAVING,
    )


@handles(a.Reset)
def _reset(state: WizardState, action: a.Reset) -> WizardState:
    return WizardState(venues=state.venues, promoters=state.promoters)


def failed_events(state: WizardState) -> List[ExtractedEvent]:
    """Events whose save failed in the last batch, matched by display name."""
    failed_names = {error.event_name for error in state.batch_errors}
    return [e for e in state.events_to_import if (e.name or UNNAMED_EVENT) in failed_names]
