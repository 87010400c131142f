import copy
import re

import pytest

from sheet_ledger.app import create_app
from sheet_ledger.config.settings import Config
from sheet_ledger.errors import RemoteOperationError
from sheet_ledger.sheets.records import column_letter_to_index

_ADDRESS = re.compile(r"^(?P<sheet>.+)!(?P<column>[A-Z]+)(?P<row>\d+)$")

WRITE_METHODS = {'append_row', 'update_cell', 'delete_row', 'set_background_color'}


class FakeSheetsClient:
    """In-memory stand-in for SheetsClient, recording every call."""

    def __init__(self, grids):
        self.grids = copy.deepcopy(grids)
        self.backgrounds = {}
        self.calls = []
        self.fail_reads = False
        self.fail_writes = False
        self.fail_formatting = False
        self.fail_background_reads = False

    @property
    def writes(self):
        return [call for call in self.calls if call[0] in WRITE_METHODS]

    def _remote_failure(self, cause):
        return RemoteOperationError('Falha ao comunicar com Google Sheets API.', cause=cause)

    def connect(self):
        self.calls.append(('connect',))
        return 'Finanças'

    def get_values(self, sheet_name):
        self.calls.append(('get_values', sheet_name))
        if self.fail_reads:
            raise self._remote_failure('quota exceeded')
        return copy.deepcopy(self.grids.get(sheet_name, []))

    def get_header(self, sheet_name):
        self.calls.append(('get_header', sheet_name))
        if self.fail_reads:
            raise self._remote_failure('quota exceeded')
        grid = self.grids.get(sheet_name, [])
        return list(grid[0]) if grid else []

    def append_row(self, sheet_name, row):
        self.calls.append(('append_row', sheet_name, list(row)))
        if self.fail_writes:
            raise self._remote_failure('permission denied')
        grid = self.grids.setdefault(sheet_name, [])
        grid.append(list(row))
        row_number = len(grid)
        return {
            'spreadsheetId': 'test-sheet',
            'updates': {
                'updatedRange': f"{sheet_name}!A{row_number}:D{row_number}",
                'updatedRows': 1,
            },
        }

    def update_cell(self, address, value):
        self.calls.append(('update_cell', address, value))
        if self.fail_writes:
            raise self._remote_failure('permission denied')
        match = _ADDRESS.match(address)
        sheet_name = match.group('sheet').strip("'")
        row_index = int(match.group('row')) - 1
        column_index = column_letter_to_index(match.group('column')) - 1

        row = self.grids[sheet_name][row_index]
        while len(row) <= column_index:
            row.append('')
        row[column_index] = value
        return {'updatedRange': address, 'updatedCells': 1}

    def delete_row(self, sheet_name, row_number):
        self.calls.append(('delete_row', sheet_name, row_number))
        if self.fail_writes:
            raise self._remote_failure('permission denied')
        del self.grids[sheet_name][row_number - 1]
        return {'replies': [{}]}

    def set_background_color(self, sheet_name, row_number, column_letter, color):
        self.calls.append(('set_background_color', sheet_name, row_number, column_letter, color))
        if self.fail_formatting:
            raise self._remote_failure('formatting not allowed')
        key = (sheet_name, row_number, column_letter)
        if color is None:
            self.backgrounds.pop(key, None)
        else:
            self.backgrounds[key] = color
        return {'replies': [{}]}

    def get_background_colors(self, sheet_name, column_letter):
        self.calls.append(('get_background_colors', sheet_name, column_letter))
        if self.fail_background_reads:
            raise self._remote_failure('formats unavailable')
        return {
            row: color
            for (sheet, row, column), color in self.backgrounds.items()
            if sheet == sheet_name and column == column_letter
        }


SAMPLE_GRIDS = {
    'Registro': [
        ['Data', 'Valor', 'Tag 1', 'Tag 2', 'Tag 3', 'Tag 4', 'Descrição', 'Método de Pagamento', 'Tipo'],
        ['01/10/2026', '120,50', 'Mercado', '', '', '', 'Compras do mês', 'Crédito', 'Despesa'],
        ['02/10/2026', '3000', 'Salário'],
    ],
    'Metas': [
        ['Mês', 'Tag', 'Meta'],
        ['10/2026', 'Mercado', '800'],
    ],
    'Organizadores': [
        ['Tag', 'Método de Pagamento', 'Tipo', 'Cor'],
        ['Mercado', 'Crédito', 'Despesa', '#00ff00'],
        ['Salário', '', 'Receita'],
    ],
}


class LedgerTestConfig(Config):
    SPREADSHEET_ID = 'test-sheet'
    GOOGLE_CREDENTIALS_JSON = '{"client_email": "ledger@test.iam.gserviceaccount.com"}'
    ALLOWED_ORIGINS = ['https://ledger.example']
    ENVIRONMENT = 'testing'
    CONNECT_RETRIES = 3


@pytest.fixture()
def sheets() -> FakeSheetsClient:
    return FakeSheetsClient(SAMPLE_GRIDS)


@pytest.fixture()
def app(sheets):
    application = create_app(LedgerTestConfig, sheets_client=sheets)
    application.config['TESTING'] = True
    return application


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client
