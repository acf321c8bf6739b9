"""Unit tests for the import wizard's state transitions."""

from typing import List

import pytest

from fair_importer.models import (
    BatchError,
    CreatedEvent,
    EventRef,
    ExtractedEvent,
    PageMetadata,
    VenueOption,
    VenueRef,
)
from fair_importer.wizard import WizardState, WizardStep, reduce
from fair_importer.wizard import actions as a
from fair_importer.wizard.reducer import failed_events


def _apply(state: WizardState, *actions: object) -> WizardState:
    for action in actions:
        state = reduce(state, action)
    return state


@pytest.fixture
def selecting(sample_events: List[ExtractedEvent]) -> WizardState:
    """A wizard showing three candidates on the selection step."""
    return reduce(WizardState(), a.ExtractSuccess(sample_events, {}))


@pytest.fixture
def reviewing(selecting: WizardState) -> WizardState:
    """A wizard reviewing the first of three selected events."""
    selected = selecting.selected_events()
    return reduce(selecting, a.ProceedToReview(selected, {"name": "medium"}))


class TestBasics:
    """Tests for simple field transitions."""

    def test_initial_state(self) -> None:
        state = WizardState()
        assert state.step == WizardStep.URL_INPUT
        assert state.venue_option == VenueOption.none()
        assert state.dates_confirmed is True
        assert state.current_event is None

    def test_unknown_action(self) -> None:
        with pytest.raises(ValueError, match="Unknown wizard action"):
            reduce(WizardState(), object())

    def test_input_state_is_not_mutated(self) -> None:
        before = WizardState()
        after = reduce(before, a.SetUrl("https://lcfair.org/"))
        assert before.url == ""
        assert after.url == "https://lcfair.org/"
        assert after is not before

    def test_set_url_clears_duplicate_warning(self) -> None:
        state = _apply(
            WizardState(),
            a.SetDuplicateWarning(EventRef(slug="fair-2025")),
            a.SetUrl("https://other.org/"),
        )
        assert state.duplicate_warning is None

    def test_leaving_manual_paste_clears_text(self) -> None:
        state = _apply(
            WizardState(),
            a.SetManualPaste(True),
            a.SetPastedContent("County Fair"),
        )
        assert state.pasted_content == "County Fair"
        state = reduce(state, a.SetManualPaste(False))
        assert state.pasted_content == ""

    def test_fetch_success_keeps_json_ld(self) -> None:
        metadata = PageMetadata(title="Fair", json_ld={"@type": "Event"})
        state = reduce(WizardState(), a.FetchSuccess("text", metadata))
        assert state.fetched_content == "text"
        assert state.fetched_json_ld == {"@type": "Event"}


class TestSelection:
    """Tests for candidate selection."""

    def test_extract_success_selects_everything(self, selecting: WizardState) -> None:
        assert selecting.step == WizardStep.SELECT_EVENTS
        assert selecting.selected_event_ids == {"event-0-aaa", "event-1-bbb", "event-2-ccc"}

    def test_toggle_single_event(self, selecting: WizardState) -> None:
        state = reduce(selecting, a.ToggleEventSelection("event-1-bbb"))
        assert "event-1-bbb" not in state.selected_event_ids
        state = reduce(state, a.ToggleEventSelection("event-1-bbb"))
        assert "event-1-bbb" in state.selected_event_ids

    def test_select_all_toggle(self, selecting: WizardState) -> None:
        """Test that select-all clears a full selection and fills a partial one."""
        cleared = reduce(selecting, a.ToggleSelectAll())
        assert cleared.selected_event_ids == frozenset()

        partial = reduce(cleared, a.ToggleEventSelection("event-2-ccc"))
        filled = reduce(partial, a.ToggleSelectAll())
        assert filled.selected_event_ids == selecting.selected_event_ids

    def test_selected_events_keep_extraction_order(self, selecting: WizardState) -> None:
        state = reduce(selecting, a.SetSelectedEventIds(frozenset({"event-2-ccc", "event-0-aaa"})))
        assert [e.extract_id for e in state.selected_events()] == ["event-0-aaa", "event-2-ccc"]

    def test_extract_single_goes_to_review(self, sample_events: List[ExtractedEvent]) -> None:
        state = reduce(WizardState(), a.ExtractSingle(sample_events[0], {}))
        assert state.step == WizardStep.REVIEW
        assert state.events_to_import == [sample_events[0]]

    def test_extract_fail_clears_candidates(self, selecting: WizardState) -> None:
        state = reduce(selecting, a.ExtractFail("No events found. Please add event data manually."))
        assert state.step == WizardStep.REVIEW
        assert state.error.startswith("No events found")
        assert state.extracted_events == []
        assert state.selected_event_ids == frozenset()


class TestReview:
    """Tests for reviewing and editing events."""

    def test_proceed_loads_first_event(self, reviewing: WizardState) -> None:
        assert reviewing.step == WizardStep.REVIEW
        assert reviewing.current_event_index == 0
        assert len(reviewing.events_to_import) == 3
        assert reviewing.extracted_data.name == "Spring Craft Fair"
        assert reviewing.confidence == {"name": "medium"}
        assert reviewing.new_venue_name == "Civic Center"
        assert reviewing.new_venue_city == "Springfield"

    def test_proceed_with_nothing_selected_is_a_no_op(self, selecting: WizardState) -> None:
        assert reduce(selecting, a.ProceedToReview([], {})) is selecting

    def test_update_extracted_data(self, reviewing: WizardState) -> None:
        state = reduce(reviewing, a.UpdateExtractedData({"name": "Spring Fair", "ticket_price_min": 5.0}))
        assert state.extracted_data.name == "Spring Fair"
        assert state.extracted_data.ticket_price_min == 5.0
        assert reviewing.extracted_data.name == "Spring Craft Fair"

    def test_update_rejects_unknown_fields(self, reviewing: WizardState) -> None:
        with pytest.raises(ValueError, match="Unknown event fields"):
            reduce(reviewing, a.UpdateExtractedData({"venue": "x"}))

    def test_save_current_edits_keeps_identity(self, reviewing: WizardState) -> None:
        state = _apply(
            reviewing,
            a.UpdateExtractedData({"name": "Edited"}),
            a.SaveCurrentEventEdits(),
        )
        saved = state.events_to_import[0]
        assert saved.name == "Edited"
        assert saved.extract_id == "event-0-aaa"
        assert state.events_to_import[1].name == "Summer Fair"

    def test_navigate_resets_venue_choice(self, reviewing: WizardState) -> None:
        state = _apply(
            reviewing,
            a.SetSelectedVenueId("v2"),
            a.NavigateEvent(1, reviewing.events_to_import[1], {}),
        )
        assert state.current_event_index == 1
        assert state.extracted_data.name == "Summer Fair"
        assert state.selected_venue_id == ""
        assert state.new_venue_name == "Fairgrounds"


class TestVenueAndPromoter:
    """Tests for the venue and promoter fields."""

    def test_existing_venue_clears_new_venue(self, reviewing: WizardState) -> None:
        state = reduce(reviewing, a.SetSelectedVenueId("v2"))
        assert state.selected_venue_id == "v2"
        assert state.new_venue_name == ""
        assert state.new_venue_city == ""

    def test_new_venue_name_clears_existing(self) -> None:
        state = _apply(WizardState(), a.SetSelectedVenueId("v2"), a.SetNewVenueName("Expo Hall"))
        assert state.selected_venue_id == ""
        assert state.new_venue_name == "Expo Hall"

    def test_blank_new_venue_keeps_existing(self) -> None:
        state = _apply(WizardState(), a.SetSelectedVenueId("v2"), a.SetNewVenueName(""))
        assert state.selected_venue_id == "v2"

    def test_new_venue_field(self) -> None:
        state = reduce(WizardState(), a.SetNewVenueField("state", "IL"))
        assert state.new_venue_state == "IL"
        with pytest.raises(ValueError, match="Invalid venue field"):
            reduce(state, a.SetNewVenueField("zip", "60030"))

    def test_reference_data(self, sample_venues: List[VenueRef]) -> None:
        state = reduce(WizardState(), a.SetReferenceData(sample_venues, []))
        assert state.venues == sample_venues


class TestSaving:
    """Tests for save results, retry and reset."""

    def test_save_complete(self, reviewing: WizardState) -> None:
        state = _apply(
            reviewing,
            a.SetSavingProgress(3, 3),
            a.SaveComplete([CreatedEvent(id="1", slug="spring", name="Spring Craft Fair")], []),
        )
        assert state.step == WizardStep.SUCCESS
        assert state.is_finished
        assert state.saving_progress is None
        assert len(state.created_events) == 1

    def test_retry_keeps_only_failed_events(self, reviewing: WizardState) -> None:
        state = reduce(
            reviewing,
            a.SaveComplete(
                [CreatedEvent(id="1", slug="spring", name="Spring Craft Fair")],
                [BatchError("Summer Fair", "Network error")],
            ),
        )
        assert [e.name for e in failed_events(state)] == ["Summer Fair"]

        retried = reduce(state, a.RetryFailed())
        assert retried.step == WizardStep.SAVING
        assert [e.name for e in retried.events_to_import] == ["Summer Fair"]
        assert retried.batch_errors == []
        assert len(retried.created_events) == 1

    def test_retry_without_failures_is_a_no_op(self, reviewing: WizardState) -> None:
        state = reduce(reviewing, a.SaveComplete([], []))
        assert reduce(state, a.RetryFailed()) is state

    def test_reset_keeps_reference_data(self, reviewing: WizardState, sample_venues: List[VenueRef]) -> None:
        state = _apply(reviewing, a.SetReferenceData(sample_venues, []), a.Reset())
        assert state.step == WizardStep.URL_INPUT
        assert state.events_to_import == []
        assert state.venues == sample_venues
