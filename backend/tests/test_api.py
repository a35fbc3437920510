"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

import main


HOUSE = {
    'entities': [
        {'id': 'n-1', 'loc': [4, 4]},
        {'id': 'n-2', 'loc': [4, 5]},
        {'id': 'n-3', 'loc': [5, 5]},
        {'id': 'w-1', 'nodes': ['n-1', 'n-2', 'n-3'], 'tags': {'building': 'house', 'phone': '123'}},
    ],
}


@pytest.fixture
def client():
    with TestClient(main.app) as client:
        yield client
    main.context.reference.clear()
    main.sessions.clear()


@pytest.fixture
def session_id(client) -> str:
    response = client.post('/api/graph', json={'head': HOUSE, 'name': 'house'})
    assert response.status_code == 200
    return response.json()['session_id']


def test_health(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'ok'


def test_rules(client):
    rules = client.get('/api/rules').json()['rules']
    assert len(rules) == 6

    naming = client.get('/api/rules/naming').json()['rules']
    assert [r['issue_type'] for r in naming] == ['suspicious_name']

    assert client.get('/api/rules/unknown').status_code == 400


def test_upload_reports_changes(client):
    base = {'entities': HOUSE['entities'][:3]}
    response = client.post('/api/graph', json={'head': HOUSE, 'base': base})

    data = response.json()
    assert data['entity_count'] == 4
    assert data['created'] == ['w-1']
    assert data['modified'] == []


@pytest.mark.parametrize('head', [
    {},
    {'entities': [{'id': 'w-1', 'tags': 'building'}]},
    {'entities': 5},
    {'ways': [{'id': 'w-1', 'nodes': 5}]},
])
def test_upload_rejects_bad_graphs(client, head):
    assert client.post('/api/graph', json={'head': head}).status_code == 400


def test_validate(client, session_id):
    response = client.post(f'/api/validate/{session_id}')
    assert response.status_code == 200

    data = response.json()
    assert [i['type'] for i in data['issues']] == ['mismatched_geometry', 'private_data']
    assert data['rules_skipped'] == ['R-TAG-02', 'R-NAME-01']
    assert data['reference_data_loaded'] == {'deprecated': False, 'nsi': False}


def test_validate_selected_rules(client, session_id):
    response = client.post(f'/api/validate/{session_id}', json={'rule_ids': ['R-PRIV-01']})
    assert [i['type'] for i in response.json()['issues']] == ['private_data']


def test_loading_reference_data_enables_rules(client):
    response = client.post('/api/graph', json={'head': {
        'entities': [
            {'id': 'n-1', 'loc': [4, 4]},
            {'id': 'n-2', 'loc': [4, 5]},
            {'id': 'w-1', 'nodes': ['n-1', 'n-2'], 'tags': {'highway': 'ford'}},
        ],
    }})
    session_id = response.json()['session_id']

    assert client.post(f'/api/validate/{session_id}').json()['issues'] == []

    response = client.post('/api/reference-data/deprecated', json=[{'old': {'highway': 'ford'}, 'replace': {'ford': '*'}}])
    assert response.json()['loaded'] == {'deprecated': True, 'nsi': False}

    issues = client.post(f'/api/validate/{session_id}').json()['issues']
    assert [i['subtype'] for i in issues] == ['deprecated_tags']


def test_bad_reference_data_is_rejected(client):
    response = client.post('/api/reference-data/deprecated', json=[{'replace': {'ford': '*'}}])
    assert response.status_code == 400
    assert client.get('/api/reference-data').json()['loaded']['deprecated'] is False


def test_load_nsi(client):
    response = client.post('/api/reference-data/nsi', json={
        'data': {'nsi': {}},
        'generics': {'genericWords': ['^stores?$']},
        'trees': {'trees': {'brands': {'mainTag': 'brand:wikidata'}}},
    })
    assert response.json()['loaded']['nsi'] is True


def test_report_requires_validation(client, session_id):
    assert client.get(f'/api/session/{session_id}/download/report').status_code == 400


def test_report(client, session_id):
    client.post(f'/api/validate/{session_id}')

    response = client.get(f'/api/session/{session_id}/download/report')

    assert response.status_code == 200
    assert response.headers['content-type'].startswith(
        'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    assert 'house_probleme.xlsx' in response.headers['content-disposition']
    assert response.content[:2] == b'PK'


def test_deleted_session_is_gone(client, session_id):
    assert client.delete(f'/api/session/{session_id}').status_code == 200
    assert client.post(f'/api/validate/{session_id}').status_code == 404


def test_checkers(client):
    checkers = client.get('/api/checkers').json()['checkers']
    assert checkers[-1]['rule_ids'] is None
    assert client.get('/api/checkers/privacy-checker').json()['rule_ids'] == ['R-PRIV-01']
    assert client.get('/api/checkers/nope').status_code == 404


@pytest.mark.parametrize('data', [
    {'nsi': {'brands/shop/supermarket': 'oops'}},
    {'nsi': {'brands/shop/supermarket': {'properties': {'exclude': ['^market$']}}}},
    {'nsi': {'brands/shop/supermarket': {'properties': {'exclude': {'generic': '^market$'}}}}},
])
def test_bad_nsi_is_rejected(client, data):
    response = client.post('/api/reference-data/nsi', json={
        'data': data,
        'trees': {'trees': {'brands': {'mainTag': 'brand:wikidata'}}},
    })
    assert response.status_code == 400
    assert client.get('/api/reference-data').json()['loaded']['nsi'] is False


def test_report_with_non_ascii_name(client):
    session_id = client.post('/api/graph', json={'head': HOUSE, 'name': 'семейный'}).json()['session_id']
    client.post(f'/api/validate/{session_id}')

    response = client.get(f'/api/session/{session_id}/download/report')

    assert response.status_code == 200
    disposition = response.headers['content-disposition']
    assert 'filename="' + '_' * 9 + 'probleme.xlsx"' in disposition
    assert "filename*=UTF-8''%D1%81" in disposition
