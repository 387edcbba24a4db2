import re

import inflect

p = inflect.engine()


def split_camel_case(word: str) -> str:
    """Split PascalCase or camelCase into space-separated words."""
    return re.sub(r'(?<!^)(?=[A-Z])', ' ', word)


def to_pascal_case(phrase: str) -> str:
    return ''.join(word.capitalize() for word in phrase.split())


def to_snake_case(phrase: str) -> str:
    return '_'.join(word.lower() for word in phrase.split())


def _identifier(class_identifier) -> str:
    if isinstance(class_identifier, type):
        return class_identifier.__name__
    return str(class_identifier)


def table_name_for(class_identifier) -> str:
    """
    Derive the table name of a model: lower-case the class name, then pluralize it.

    Song -> songs, Category -> categories. Accepts a class or its name.
    """
    lowered = _identifier(class_identifier).strip().lower()
    if not lowered:
        return lowered
    return p.plural(lowered)


def transform_word(raw_word: str):
    spaced = split_camel_case(raw_word)  # e.g. "Destruction Log"
    plural_spaced = p.plural(spaced.lower())  # e.g. "destruction logs"

    return {
        "title_singular": spaced.title(),  # Destruction Log
        "title_plural": plural_spaced.title(),  # Destruction Logs
        "pascal_singular": to_pascal_case(spaced),  # DestructionLog
        "pascal_plural": to_pascal_case(plural_spaced),  # DestructionLogs
        "snake_singular": to_snake_case(spaced),  # destruction_log
        "snake_plural": to_snake_case(plural_spaced),  # destruction_logs
    }
