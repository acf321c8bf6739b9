"""Main entry point for the fair-importer CLI."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .api import CatalogClient, ImportService
from .config import ConfigValidationError, ImportSettings, load_settings
from .extraction import AiExtractor, WorkersAiClient
from .fetchers import ContentFetcher
from .models import ExtractedEvent
from .models.event import WIRE_KEYS
from .wizard import ImportWizard, WizardState, WizardStep
from .wizard import actions as a

NO_EVENTS_FOUND = "No events found. Please add event data manually."


def build_service(settings: ImportSettings) -> ImportService:
    fetcher = ContentFetcher(timeout=settings.fetch_timeout, user_agent=settings.user_agent)
    client = WorkersAiClient(
        settings.ai_account_id or "",
        settings.ai_api_token or "",
        base_url=settings.ai_base_url,
    )
    catalog = CatalogClient(settings.api_base_url, api_token=settings.api_token)
    return ImportService(fetcher, AiExtractor(client), catalog)


def parse_selection(value: str, count: int) -> List[int]:
    """Turn a 1-based list like "1,3" into zero-based candidate indexes."""
    indexes = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= count:
            raise ValueError(f"Invalid selection '{part}'. Choose between 1 and {count}")
        indexes.append(int(part) - 1)
    return list(dict.fromkeys(indexes))


def format_candidates(
    events: List[ExtractedEvent], confidence: Dict[str, Dict[str, str]]
) -> str:
    """Format extracted candidates for display."""
    if not events:
        return NO_EVENTS_FOUND

    output = [f"Found {len(events)} events:", ""]
    for number, event in enumerate(events, start=1):
        output.append(f"  🎫 {number}. {event.name or 'Unnamed Event'}")

        when = event.start_date or "date unknown"
        if event.end_date and event.end_date != event.start_date:
            when += f" → {event.end_date}"
        if event.start_time:
            when += f"  ⏰ {event.start_time}"
            if event.end_time:
                when += f" - {event.end_time}"
        output.append(f"     📅 {when}")
        if event.hours_notes:
            output.append(f"     🕒 {event.hours_notes}")

        place = ", ".join(
            part for part in (event.venue_name, event.venue_city, event.venue_state) if part
        )
        if place:
            output.append(f"     📍 {place}")

        if event.ticket_price_min is not None:
            price = f"${event.ticket_price_min:.2f}"
            if event.ticket_price_max is not None and event.ticket_price_max != event.ticket_price_min:
                price += f" - ${event.ticket_price_max:.2f}"
            output.append(f"     💵 {price}")
        if event.ticket_url:
            output.append(f"     🔗 {event.ticket_url}")

        low = sorted(
            field
            for field, level in confidence.get(event.extract_id, {}).items()
            if level == "low"
        )
        if low:
            output.append(f"     ⚠️  Low confidence: {', '.join(low)}")
        output.append("")

    return "\n".join(output).rstrip()


def format_import_results(state: WizardState) -> str:
    """Format the outcome of a save batch for display."""
    output = []
    created = state.created_events
    errors = state.batch_errors

    if created:
        output.append(f"✅ Imported {len(created)} events:")
        for event in created:
            output.append(f"  • {event.name} → /events/{event.slug}")

    if errors:
        if created:
            output.append("")
            output.append("⚠️  Processing Summary:")
            output.append(f"✅ {len(created)} events imported successfully")
            output.append(f"❌ {len(errors)} events failed")
        else:
            output.append("❌ No events imported - all events failed")

        output.append("")
        output.append("❌ Errors:")
        for message in dict.fromkeys(error.to_user_message() for error in errors):
            output.append(f"  • {message}")

    if not created and not errors:
        output.append("No events were imported.")

    return "\n".join(output)


def _read_paste_file(path: str) -> str:
    paste_path = Path(path)
    if not paste_path.exists():
        raise FileNotFoundError(f"Paste file not found: {paste_path}")
    return paste_path.read_text(encoding="utf-8")


async def run_extract(args: argparse.Namespace, service: ImportService) -> int:
    if args.paste_file:
        fetched = service.from_pasted(_read_paste_file(args.paste_file))
    else:
        print(f"📥 Fetching {args.url}...")
        fetched = await service.fetch_url(args.url)
    if not fetched.success:
        print(f"❌ {fetched.error}")
        return 1

    print("🤖 Extracting events...")
    result = await service.extract(fetched.content or "", args.url, fetched.metadata)
    if not result.success or not result.events:
        print(f"❌ {result.error or NO_EVENTS_FOUND}")
        return 1

    if args.json:
        payload = {
            "events": [event.to_dict() for event in result.events],
            "confidence": {
                event_id: {WIRE_KEYS[field]: level for field, level in fields.items()}
                for event_id, fields in result.confidence.items()
            },
        }
        print(json.dumps(payload, indent=2))
    else:
        print(format_candidates(result.events, result.confidence))
    return 0


def _print_progress(state: WizardState, action: object) -> None:
    if isinstance(action, a.SetSavingProgress):
        print(f"💾 Saving {action.current} of {action.total}...")


async def run_import(args: argparse.Namespace, service: ImportService) -> int:
    wizard = ImportWizard(service)
    wizard.subscribe(_print_progress)
    try:
        await wizard.load_reference_data()

        if args.paste_file:
            wizard.set_manual_paste(True)
            wizard.set_pasted_content(_read_paste_file(args.paste_file))
        else:
            wizard.set_url(args.url)
            print(f"📥 Fetching {args.url}...")

        await wizard.handle_fetch()
        state = wizard.state
        if state.step == WizardStep.URL_INPUT:
            print(f"❌ {state.error}")
            return 1
        if state.duplicate_warning:
            existing = state.duplicate_warning
            print(f"⚠️  Already imported as '{existing.name or existing.slug}' (/events/{existing.slug})")
        if not state.extracted_events:
            print(f"❌ {state.error or NO_EVENTS_FOUND}")
            return 1

        if state.step == WizardStep.SELECT_EVENTS:
            if args.select:
                indexes = parse_selection(args.select, len(state.extracted_events))
                wizard.select_events(state.extracted_events[i].extract_id for i in indexes)
            wizard.proceed_to_review()

        while wizard.state.step == WizardStep.REVIEW:
            wizard.go_to_next_event()
            if wizard.state.error:
                print(f"❌ {wizard.state.error}")
                return 1

        if args.venue_id:
            wizard.select_existing_venue(args.venue_id)
        elif args.new_venue:
            wizard.set_new_venue(
                args.new_venue,
                address=args.venue_address or "",
                city=args.venue_city or "",
                state=args.venue_state or "",
            )
        elif args.no_venue:
            wizard.clear_venue()
        wizard.go_to_promoter()

        wizard.select_promoter(args.promoter)
        wizard.go_to_preview()
        if wizard.state.error:
            print(f"❌ {wizard.state.error}")
            return 1

        await wizard.save()
        if args.retry and wizard.state.batch_errors:
            print(f"🔁 Retrying {len(wizard.state.batch_errors)} failed events...")
            await wizard.retry_failed()
    finally:
        wizard.close()

    state = wizard.state
    print(format_import_results(state))
    if not state.batch_errors:
        return 0
    return 2 if state.created_events else 1


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("url", nargs="?", help="Event page URL to import from")
    source.add_argument("--paste-file", help="Read page text from a file instead of fetching")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import fair and festival events from event pages"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument("--config", "-c", help="Path to settings JSON file")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Fetch a page and show extracted events")
    _add_source_arguments(extract)
    extract.add_argument("--json", action="store_true", help="Print candidates as JSON")

    import_ = subparsers.add_parser("import", help="Extract events and save them to the catalog")
    _add_source_arguments(import_)
    import_.add_argument("--promoter", required=True, help="Promoter id to attach events to")
    import_.add_argument("--select", help="Comma-separated candidate numbers to import, e.g. 1,3")
    venue = import_.add_mutually_exclusive_group()
    venue.add_argument("--venue-id", help="Link events to an existing venue")
    venue.add_argument("--new-venue", help="Create a new venue with this name")
    venue.add_argument(
        "--no-venue", action="store_true", help="Save events without a venue"
    )
    import_.add_argument("--venue-address", help="Street address for --new-venue")
    import_.add_argument("--venue-city", help="City for --new-venue")
    import_.add_argument("--venue-state", help="Two-letter state for --new-venue")
    import_.add_argument(
        "--retry", action="store_true", help="Retry failed events once after saving"
    )
    return parser


async def async_main(args: argparse.Namespace) -> int:
    """Async main entry point."""
    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ConfigValidationError) as e:
        print(f"❌ {e}")
        return 1

    if not settings.has_ai_credentials:
        logging.getLogger(__name__).warning(
            "Cloudflare credentials missing; extraction will fall back to page metadata"
        )

    service = build_service(settings)
    if args.command == "extract":
        return await run_extract(args, service)
    return await run_import(args, service)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    load_dotenv(override=True)
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("🎡 Fair Importer")
    print("=" * 50)

    try:
        return asyncio.run(async_main(args))
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    except Exception as e:
        print(f"Critical Error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
