"""Tests for translation mappings."""

import pytest
from rowcopy.translations import TranslationRegistry, translate_row, translate_value


@pytest.fixture
def registry():
    """Registry with a populated and an empty mapping."""
    return TranslationRegistry({
        'orders_v2': {
            'status': [['pending', 'open'], ['done', 'closed']],
            'currency': [['usd', 'USD']],
        },
        'empty': {},
    })


def test_mapping_found(registry):
    mapping = registry.mapping('orders_v2')

    assert mapping == {
        'status': [('pending', 'open'), ('done', 'closed')],
        'currency': [('usd', 'USD')],
    }


def test_not_found_is_distinct_from_empty(registry):
    """Test a missing key gives None and an empty mapping gives {}."""
    assert registry.mapping('missing') is None
    assert registry.mapping('empty') == {}
    assert 'empty' in registry
    assert 'missing' not in registry


def test_keys_sorted(registry):
    assert registry.keys() == ['empty', 'orders_v2']


def test_mapping_returns_copy(registry):
    """Test callers cannot change the registry through a returned mapping."""
    registry.mapping('orders_v2')['status'].append(('x', 'y'))

    assert len(registry.mapping('orders_v2')['status']) == 2


def test_from_config():
    registry = TranslationRegistry.from_config({'translations': {'x': {'status': [['old', 'new']]}}})

    assert registry.mapping('x') == {'status': [('old', 'new')]}
    assert TranslationRegistry.from_config({}).keys() == []
    assert TranslationRegistry.from_config(None).keys() == []


def test_invalid_rule_rejected():
    with pytest.raises(ValueError, match="status"):
        TranslationRegistry({'x': {'status': [['only-one']]}})


def test_first_matching_rule_wins():
    """Test rules [A->B, B->C] turn A into B, not C."""
    assert translate_value('A', [('A', 'B'), ('B', 'C')]) == 'B'
    assert translate_value('B', [('A', 'B'), ('B', 'C')]) == 'C'
    assert translate_value('Z', [('A', 'B'), ('B', 'C')]) == 'Z'


def test_translate_row_only_touches_mapped_columns():
    columns = ['id', 'status', 'note']
    mapping = {'status': [('old', 'new')]}

    assert translate_row((1, 'old', 'old'), columns, mapping) == (1, 'new', 'old')
    assert translate_row((2, 'other', None), columns, mapping) == (2, 'other', None)


def test_translate_row_handles_null_rules():
    """Test None can be translated like any other value."""
    mapping = {'status': [(None, 'unknown')]}

    assert translate_row((1, None), ['id', 'status'], mapping) == (1, 'unknown')


def test_translate_row_keeps_length():
    row = (1, 'a', 'old')

    assert len(translate_row(row, ['id', 'name', 'status'], {'status': [('old', 'new')]})) == 3
