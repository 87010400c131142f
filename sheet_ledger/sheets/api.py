"""
Low-level Google Sheets access for the Sheet Ledger API.

SheetsClient is the single authenticated handle to the ledger spreadsheet. It
is built once at startup by the application factory and passed to the
handler functions; nothing in this module keeps a process-wide connection.

Every remote failure is logged and re-raised as RemoteOperationError so the
HTTP layer can answer with the underlying cause.
"""

import logging
from typing import Any, Dict, List, Optional

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError, GSpreadException, SpreadsheetNotFound

from sheet_ledger.errors import AuthenticationError, RemoteOperationError
from sheet_ledger.sheets.records import (
    column_index_to_letter,
    column_letter_to_index,
    quote_sheet_name,
)

# Set up logging
logger = logging.getLogger(__name__)

VALUE_INPUT_OPTION = 'USER_ENTERED'

# Failures that mean "the remote call did not succeed"
REMOTE_ERRORS = (APIError, GSpreadException, GoogleAuthError, requests.exceptions.RequestException)

_BACKGROUND_FIELDS = (
    'sheets(data(startRow,rowData(values(userEnteredFormat(backgroundColor,backgroundColorStyle)))))'
)


def _remote_error(action: str, error: Exception) -> RemoteOperationError:
    logger.error(f"Google Sheets API error while trying to {action}: {str(error)}")
    return RemoteOperationError('Falha ao comunicar com Google Sheets API.', cause=str(error))


class SheetsClient:
    """
    Grid read/write capability over one spreadsheet.

    Args:
        spreadsheet_id (str): Key of the target spreadsheet
        gc (gspread.Client): Authorized gspread client
    """

    def __init__(self, spreadsheet_id: str, gc: gspread.Client):
        self.spreadsheet_id = spreadsheet_id
        self._gc = gc
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @classmethod
    def from_config(cls, config) -> 'SheetsClient':
        """
        Authenticate with the service account described by the configuration.

        Raises:
            AuthenticationError: If credentials cannot be loaded
        """
        try:
            info = config.get_service_account_info()
            credentials = Credentials.from_service_account_info(info, scopes=config.SCOPES)
            gc = gspread.authorize(credentials)
            logger.info(f"Authorized Google Sheets client for {info.get('client_email', 'service account')}")
            return cls(config.SPREADSHEET_ID, gc)
        except (ValueError, KeyError, FileNotFoundError) as e:
            logger.error(f"Failed to load service account credentials: {str(e)}")
            raise AuthenticationError(f"Failed to authenticate with Google Sheets API: {str(e)}")

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            self.connect()
        return self._spreadsheet

    def connect(self) -> str:
        """
        Open the spreadsheet and confirm access by reading its title.

        Returns:
            str: The spreadsheet title

        Raises:
            AuthenticationError: If the spreadsheet cannot be opened
        """
        try:
            spreadsheet = self._gc.open_by_key(self.spreadsheet_id)
            title = spreadsheet.title
        except SpreadsheetNotFound:
            logger.error(f"Spreadsheet not found with ID: {self.spreadsheet_id}")
            raise AuthenticationError(
                "Google Spreadsheet not found or not shared with the service account"
            )
        except REMOTE_ERRORS as e:
            logger.error(f"Failed to open spreadsheet: {str(e)}")
            raise AuthenticationError(f"Falha na autenticação da Sheets API: {str(e)}")

        self._spreadsheet = spreadsheet
        logger.info(f"Spreadsheet loaded and authenticated: {title}")
        return title

    def get_values(self, sheet_name: str) -> List[List[str]]:
        """
        Read every populated row of a worksheet, header included.

        Returns:
            List[List[str]]: The grid; empty if the worksheet is empty
        """
        try:
            response = self.spreadsheet.values_get(quote_sheet_name(sheet_name))
        except REMOTE_ERRORS as e:
            raise _remote_error(f"read '{sheet_name}'", e)

        values = response.get('values', [])
        logger.info(f"Retrieved {len(values)} rows from '{sheet_name}'")
        return values

    def get_header(self, sheet_name: str) -> List[str]:
        """Read only the first row of a worksheet."""
        try:
            response = self.spreadsheet.values_get(f"{quote_sheet_name(sheet_name)}!1:1")
        except REMOTE_ERRORS as e:
            raise _remote_error(f"read the header of '{sheet_name}'", e)

        values = response.get('values', [])
        return values[0] if values else []

    def append_row(self, sheet_name: str, row: List[Any]) -> Dict[str, Any]:
        """
        Append one row after the last populated row of a worksheet.

        Returns:
            Dict[str, Any]: The Sheets API append response
        """
        last_column = column_index_to_letter(max(len(row), 1))
        range_name = f"{quote_sheet_name(sheet_name)}!A:{last_column}"
        try:
            response = self.spreadsheet.values_append(
                range_name,
                params={'valueInputOption': VALUE_INPUT_OPTION, 'insertDataOption': 'INSERT_ROWS'},
                body={'values': [row]},
            )
        except REMOTE_ERRORS as e:
            raise _remote_error(f"append a row to '{sheet_name}'", e)

        logger.info(f"Successfully appended row to '{sheet_name}': {len(row)} columns")
        return response

    def update_cell(self, address: str, value: Any) -> Dict[str, Any]:
        """
        Write a single value to an A1 address such as 'Registro!C5'.

        Returns:
            Dict[str, Any]: The Sheets API update response
        """
        try:
            response = self.spreadsheet.values_update(
                address,
                params={'valueInputOption': VALUE_INPUT_OPTION},
                body={'values': [[value]]},
            )
        except REMOTE_ERRORS as e:
            raise _remote_error(f"update '{address}'", e)

        logger.info(f"Successfully updated cell '{address}'")
        return response

    def _sheet_id(self, sheet_name: str) -> int:
        try:
            return self.spreadsheet.worksheet(sheet_name).id
        except REMOTE_ERRORS as e:
            raise _remote_error(f"find worksheet '{sheet_name}'", e)

    def delete_row(self, sheet_name: str, row_number: int) -> Dict[str, Any]:
        """
        Delete one row. Every row below it moves up by one.

        Args:
            sheet_name (str): Worksheet title
            row_number (int): 1-based row to delete
        """
        sheet_id = self._sheet_id(sheet_name)
        body = {
            'requests': [{
                'deleteDimension': {
                    'range': {
                        'sheetId': sheet_id,
                        'dimension': 'ROWS',
                        'startIndex': row_number - 1,
                        'endIndex': row_number,
                    }
                }
            }]
        }
        try:
            response = self.spreadsheet.batch_update(body)
        except REMOTE_ERRORS as e:
            raise _remote_error(f"delete row {row_number} of '{sheet_name}'", e)

        logger.info(f"Successfully deleted row {row_number} from '{sheet_name}'")
        return response

    def set_background_color(self, sheet_name: str, row_number: int,
                             column_letter: str, color: Optional[Dict[str, float]]) -> Dict[str, Any]:
        """
        Set the background of one cell, or clear it when color is None.

        Grid ranges are zero-based and end-exclusive, unlike A1 addresses.

        Args:
            color (Optional[Dict[str, float]]): Sheets Color object ('red', 'green', 'blue')
        """
        sheet_id = self._sheet_id(sheet_name)
        column_index = column_letter_to_index(column_letter) - 1
        # Omitting a field named in the mask resets it to the sheet default
        cell_format = {} if color is None else {'backgroundColor': color}
        body = {
            'requests': [{
                'repeatCell': {
                    'range': {
                        'sheetId': sheet_id,
                        'startRowIndex': row_number - 1,
                        'endRowIndex': row_number,
                        'startColumnIndex': column_index,
                        'endColumnIndex': column_index + 1,
                    },
                    'cell': {'userEnteredFormat': cell_format},
                    'fields': 'userEnteredFormat.backgroundColor',
                }
            }]
        }
        try:
            response = self.spreadsheet.batch_update(body)
        except REMOTE_ERRORS as e:
            raise _remote_error(f"format {column_letter}{row_number} of '{sheet_name}'", e)

        logger.info(f"Set background of {column_letter}{row_number} in '{sheet_name}'")
        return response

    def get_background_colors(self, sheet_name: str, column_letter: str) -> Dict[int, Dict[str, float]]:
        """
        Read user-entered background colors of one column, below the header.

        Returns:
            Dict[int, Dict[str, float]]: 1-based row number -> Sheets Color,
                                         only for cells with a background set
        """
        column = column_letter.upper()
        params = {
            'ranges': f"{quote_sheet_name(sheet_name)}!{column}2:{column}",
            'includeGridData': 'true',
            'fields': _BACKGROUND_FIELDS,
        }
        try:
            metadata = self.spreadsheet.fetch_sheet_metadata(params=params)
        except REMOTE_ERRORS as e:
            raise _remote_error(f"read cell formats of '{sheet_name}'", e)

        colors = {}
        for sheet in metadata.get('sheets', []):
            for grid in sheet.get('data', []):
                start_row = grid.get('startRow', 0)
                for offset, row_data in enumerate(grid.get('rowData', [])):
                    cells = row_data.get('values', [])
                    if not cells:
                        continue
                    fmt = cells[0].get('userEnteredFormat', {})
                    # Zero components are omitted, so black arrives as {}
                    color = fmt.get('backgroundColor')
                    if color is None:
                        color = fmt.get('backgroundColorStyle', {}).get('rgbColor')
                    if color is not None:
                        colors[start_row + offset + 1] = color
        return colors
