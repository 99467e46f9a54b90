"""Value translation mappings applied while copying rows."""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

Rule = Tuple[Any, Any]
TranslationMapping = Dict[str, List[Rule]]

# Add mappings under the 'translations' section of the configuration file:
#
# translations:
#   orders_v2:
#     status:
#       - [pending, open]
#       - [done, closed]
#     currency:
#       - [usd, USD]


def _normalize(mapping: Mapping[str, Iterable[Sequence[Any]]]) -> TranslationMapping:
    normalized = {}
    for column, rules in (mapping or {}).items():
        normalized[column] = []
        for rule in rules or []:
            if len(rule) != 2:
                raise ValueError(
                    f"Translation rule for column '{column}' must be a [before, after] pair, got {rule!r}"
                )
            normalized[column].append((rule[0], rule[1]))
    return normalized


class TranslationRegistry:
    """Registry of named translation mappings."""

    def __init__(self, mappings: Optional[Mapping[str, Mapping[str, Iterable[Sequence[Any]]]]] = None):
        """
        Initialize the registry.

        Args:
            mappings: Mapping key -> {column: [[before, after], ...]}
        """
        self._mappings: Dict[str, TranslationMapping] = {
            key: _normalize(mapping) for key, mapping in (mappings or {}).items()
        }

    @classmethod
    def from_config(cls, config_data: Optional[dict]) -> "TranslationRegistry":
        """Build a registry from the 'translations' section of a config dict."""
        return cls((config_data or {}).get('translations') or {})

    def mapping(self, key: str) -> Optional[TranslationMapping]:
        """
        Look up a translation mapping.

        Args:
            key: Mapping key

        Returns:
            The mapping (possibly empty), or None if the key is not registered
        """
        if key not in self._mappings:
            return None
        return {column: list(rules) for column, rules in self._mappings[key].items()}

    def keys(self) -> List[str]:
        """Registered mapping keys, sorted."""
        return sorted(self._mappings)

    def __contains__(self, key: str) -> bool:
        return key in self._mappings


def translate_value(value: Any, rules: Sequence[Rule]) -> Any:
    """Replace a value using the first rule whose 'before' equals it."""
    for before, after in rules:
        if value == before:
            return after
    return value


def translate_row(row: Sequence[Any], columns: Sequence[str],
                  mapping: TranslationMapping) -> Tuple[Any, ...]:
    """
    Apply a translation mapping to one row.

    Args:
        row: Values aligned to ``columns``
        columns: Column names of the row
        mapping: Column -> ordered substitution rules

    Returns:
        Translated row as a tuple
    """
    values = list(row)
    for index, column in enumerate(columns):
        rules = mapping.get(column)
        if rules and index < len(values):
            values[index] = translate_value(values[index], rules)
    return tuple(values)
