"""Custom field lookup by human-readable name.

Board custom fields are addressed by opaque ids on cards, while every
caller knows them by name ("PR", "Tokens Consumidos", "uuid"). Lookups here
never raise: malformed or missing input resolves to "not found".
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..wekan.models import CustomFieldDefinition, CustomFieldValue


def resolve_field(
    definitions: "Iterable[CustomFieldDefinition] | None", name: str
) -> "CustomFieldDefinition | None":
    """Find a field definition by name, ignoring case.

    The first matching definition wins when a board carries duplicate names.

    Args:
        definitions: Board custom field definitions
        name: Field name to look for

    Returns:
        Matching definition, or None
    """
    if not name or definitions is None or isinstance(definitions, (str, bytes, dict)):
        return None

    try:
        candidates = list(definitions)
    except TypeError:
        return None

    wanted = name.lower()
    for definition in candidates:
        definition_name = getattr(definition, "name", None)
        if isinstance(definition_name, str) and definition_name.lower() == wanted:
            return definition
    return None


def resolve_field_value(
    card_fields: "Iterable[CustomFieldValue] | None",
    definition: "CustomFieldDefinition | None",
    default: Any = None,
) -> Any:
    """Return a card's raw value for a field definition.

    Args:
        card_fields: The card's ``(field id, value)`` pairs
        definition: Resolved field definition
        default: Returned when the definition is missing or has no id, or the
            card carries no value for it

    Returns:
        The raw stored value, or ``default``
    """
    field_id = getattr(definition, "id", None)
    if not field_id or card_fields is None:
        return default

    for card_field in card_fields:
        if getattr(card_field, "field_id", None) == field_id:
            return card_field.value
    return default


def field_value_by_name(
    card_fields: "Iterable[CustomFieldValue] | None",
    definitions: "Iterable[CustomFieldDefinition] | None",
    name: str,
    default: Any = None,
) -> Any:
    """Resolve a field by name and return the card's value for it."""
    return resolve_field_value(card_fields, resolve_field(definitions, name), default)


def map_fields_by_name(
    card_fields: "Iterable[CustomFieldValue]",
    definitions: "Iterable[CustomFieldDefinition]",
) -> dict[str, Any]:
    """Key a card's values by field name; unknown ids keep their id as key."""
    names = {d.id: d.name for d in definitions}
    return {names.get(cf.field_id, cf.field_id): cf.value for cf in card_fields}
