"""Pytest configuration and shared fixtures for TagCheck tests."""

import pytest

from tagcheck import ValidationContext, ValidationEngine, create_default_registry


# ============================================================================
# Reference Data Fixtures
# ============================================================================


@pytest.fixture
def deprecated_rules() -> list:
    return [
        {'old': {'highway': 'no'}},
        {'old': {'highway': 'ford'}, 'replace': {'ford': '*'}},
    ]


@pytest.fixture
def nsi_data() -> dict:
    return {
        'nsi': {
            'brands/shop/supermarket': {
                'properties': {
                    'path': 'brands/shop/supermarket',
                    'exclude': {
                        'generic': ['^(mini|super)?\\s?(market|mart|mercado)( municipal)?$'],
                        'named': ['^(famiglia cooperativa|семейный)$'],
                    },
                },
            },
        },
    }


@pytest.fixture
def nsi_generics() -> dict:
    return {'genericWords': ['^stores?$']}


@pytest.fixture
def nsi_trees() -> dict:
    return {'trees': {'brands': {'mainTag': 'brand:wikidata'}}}


@pytest.fixture
def context() -> ValidationContext:
    """Context with no reference data loaded."""
    return ValidationContext()


@pytest.fixture
def loaded_context(deprecated_rules, nsi_data, nsi_generics, nsi_trees) -> ValidationContext:
    context = ValidationContext()
    context.reference.load_deprecated(deprecated_rules)
    context.reference.load_nsi(nsi_data, nsi_generics, nsi_trees)
    return context


@pytest.fixture
def engine(context) -> ValidationEngine:
    return ValidationEngine(create_default_registry(context), context.reference)


@pytest.fixture
def loaded_engine(loaded_context) -> ValidationEngine:
    return ValidationEngine(create_default_registry(loaded_context), loaded_context.reference)
