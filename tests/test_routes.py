import pytest
from flask.testing import FlaskClient

from sheet_ledger.app import create_app
from sheet_ledger.errors import AuthenticationError
from sheet_ledger.sheets.records import ROW_NUMBER

from conftest import LedgerTestConfig


def test_health(client: FlaskClient) -> None:
    response = client.get('/')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_detailed_health_checks_spreadsheet(client: FlaskClient, sheets) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['checks'] == {'spreadsheet': True}
    assert ('connect',) in sheets.calls


def test_get_all_data(client: FlaskClient) -> None:
    response = client.get('/api/get-all-data')

    assert response.status_code == 200
    payload = response.get_json()
    assert set(payload) == {'registro', 'metas', 'organizadores'}
    assert payload['registro'][0][ROW_NUMBER] == 2
    assert payload['organizadores'][0]['Cor'] == '#00ff00'


def test_get_all_data_remote_failure(client: FlaskClient, sheets) -> None:
    sheets.fail_reads = True

    response = client.get('/api/get-all-data')

    assert response.status_code == 500
    assert response.get_json() == {
        'success': False,
        'message': 'Falha ao comunicar com Google Sheets API.',
        'error': 'quota exceeded',
    }


def test_add_registro(client: FlaskClient, sheets) -> None:
    response = client.post('/api/add-registro', json={'Data': '05/10/2026', 'Valor': '12', 'Tipo': 'Despesa'})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload['success'] is True
    assert payload['message'] == 'Registro adicionado com sucesso!'
    assert 'updatedRange' in payload['updates']['updates']
    assert sheets.grids['Registro'][-1][0] == '05/10/2026'


def test_add_registro_missing_date(client: FlaskClient, sheets) -> None:
    response = client.post('/api/add-registro', json={'Valor': '12'})

    assert response.status_code == 400
    payload = response.get_json()
    assert payload['success'] is False
    assert 'Data' in payload['message']
    assert sheets.writes == []


def test_add_registro_without_json_body(client: FlaskClient, sheets) -> None:
    response = client.post('/api/add-registro', data='Data=01/01/2026')

    assert response.status_code == 400
    assert sheets.calls == []


def test_update_registro_unknown_column(client: FlaskClient, sheets) -> None:
    response = client.post(
        '/api/update-registro',
        json={ROW_NUMBER: 2, 'column': 'Nonexistent', 'value': 'x'},
    )

    assert response.status_code == 400
    assert 'Nonexistent' in response.get_json()['message']
    assert sheets.writes == []


def test_update_registro_header_row(client: FlaskClient, sheets) -> None:
    response = client.post('/api/update-registro', json={ROW_NUMBER: 1, 'column': 'Valor', 'value': '1'})

    assert response.status_code == 400
    assert sheets.calls == []


def test_update_meta(client: FlaskClient, sheets) -> None:
    response = client.post('/api/update-meta', json={ROW_NUMBER: 2, 'column': 'Meta', 'value': '950'})

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Meta atualizada com sucesso!'
    assert sheets.grids['Metas'][1] == ['10/2026', 'Mercado', '950']


def test_delete_organizador(client: FlaskClient, sheets) -> None:
    response = client.post('/api/delete-organizador', json={ROW_NUMBER: 3})

    assert response.status_code == 200
    assert len(sheets.grids['Organizadores']) == 2


def test_delete_meta_rejects_superscript_row_number(client: FlaskClient, sheets) -> None:
    response = client.post('/api/delete-meta', json={ROW_NUMBER: '²'})

    assert response.status_code == 400
    assert response.get_json()['success'] is False
    assert sheets.calls == []


def test_add_organizador_reports_formatting_warning(client: FlaskClient, sheets) -> None:
    sheets.fail_formatting = True

    response = client.post('/api/add-organizador', json={'Tag': 'Lazer', 'Cor': '#ff0000'})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload['success'] is True
    assert len(payload['warnings']) == 1


def test_remote_write_failure(client: FlaskClient, sheets) -> None:
    sheets.fail_writes = True

    response = client.post('/api/add-meta', json={'Mês': '10/2026', 'Tag': 'Casa', 'Meta': '100'})

    assert response.status_code == 500
    assert response.get_json()['error'] == 'permission denied'


def test_unexpected_error_hides_details(client: FlaskClient, sheets, monkeypatch) -> None:
    def broken(sheet_name):
        raise RuntimeError('token=secret')

    monkeypatch.setattr(sheets, 'get_values', broken)

    response = client.get('/api/get-all-data')

    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'message': 'Erro interno do servidor.'}


def test_unknown_endpoint(client: FlaskClient) -> None:
    response = client.post('/api/add-conta', json={})

    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_wrong_method(client: FlaskClient) -> None:
    response = client.get('/api/add-registro')

    assert response.status_code == 405
    assert response.get_json()['success'] is False


def test_cors_allows_configured_origin(client: FlaskClient) -> None:
    response = client.get('/api/get-all-data', headers={'Origin': 'https://ledger.example'})

    assert response.headers.get('Access-Control-Allow-Origin') == 'https://ledger.example'


def test_cors_ignores_other_origins(client: FlaskClient) -> None:
    response = client.get('/api/get-all-data', headers={'Origin': 'https://evil.example'})

    assert 'Access-Control-Allow-Origin' not in response.headers


class _FailingClient:
    def __init__(self, failures):
        self.failures = failures
        self.attempts = 0

    def connect(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise AuthenticationError('Falha na autenticação da Sheets API: invalid_grant')
        return 'Finanças'


def test_create_app_fails_fast_on_authentication_error(monkeypatch) -> None:
    failing = _FailingClient(failures=10)
    monkeypatch.setattr('sheet_ledger.app.SheetsClient.from_config', lambda config: failing)
    monkeypatch.setattr('sheet_ledger.app.time.sleep', lambda seconds: None)

    with pytest.raises(AuthenticationError):
        create_app(LedgerTestConfig)

    assert failing.attempts == LedgerTestConfig.CONNECT_RETRIES


def test_create_app_retries_startup_connection(monkeypatch) -> None:
    flaky = _FailingClient(failures=2)
    delays = []
    monkeypatch.setattr('sheet_ledger.app.SheetsClient.from_config', lambda config: flaky)
    monkeypatch.setattr('sheet_ledger.app.time.sleep', delays.append)

    app = create_app(LedgerTestConfig)

    assert app.extensions['sheets_client'] is flaky
    assert delays == [1, 2]


def test_create_app_requires_spreadsheet_id() -> None:
    class MissingSheet(LedgerTestConfig):
        SPREADSHEET_ID = None

    with pytest.raises(ValueError):
        create_app(MissingSheet)
