from .json_ld import JsonLdParser, find_event, is_event_type, parse_json_ld

__all__ = ["JsonLdParser", "find_event", "is_event_type", "parse_json_ld"]
