"""Hilfsfunktionen für das Lesen von BOIDs aus Excel und das Zurückschreiben der Ergebnisse."""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from typing import TypedDict

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .models import CheckResult
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("excel_io")


class BoidRow(TypedDict, total=False):
    """Representation einer gelesenen Tabellenzeile."""

    index: int
    boid: str
    holder: str | None


_WORKBOOK_CACHE: dict[str, Workbook] = {}


def _get_or_load_workbook(excel_path: str) -> Workbook:
    """Gibt eine zwischengespeicherte Arbeitsmappe zurück."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Lade Arbeitsmappe: %s", excel_path)
        workbook = load_workbook(excel_path)
        _WORKBOOK_CACHE[excel_path] = workbook
    return workbook


def _normalise_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    return column or None


def _cell_to_string(value: object) -> str | None:
    if value is None:
        return None
    value_str = value.strip() if isinstance(value, str) else str(value).strip()
    return value_str or None


def _normalise_boid(value: object) -> str | None:
    """BOIDs haben 16 Ziffern; Excel speichert sie oft als Zahl."""

    if value is None:
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
    boid = "".join(str(value).split())
    return boid or None


def _read_cell(worksheet: Worksheet, column: str | None, row_index: int) -> object:
    column = _normalise_column(column)
    if not column:
        return None
    return worksheet[f"{column}{row_index}"].value


def _find_last_row_with_value(worksheet: Worksheet, column: str, start_row: int) -> int:
    for row_idx in range(worksheet.max_row, start_row - 1, -1):
        if _cell_to_string(_read_cell(worksheet, column, row_idx)) is not None:
            return row_idx
    return start_row - 1


def _get_worksheet(workbook: Workbook, sheet: str | None) -> Worksheet:
    if sheet:
        try:
            return workbook[sheet]
        except KeyError as exc:
            raise ValueError(f"Arbeitsblatt '{sheet}' wurde nicht gefunden") from exc
    return workbook.active


def iter_boid_rows(
    excel_path: str,
    sheet: str | None,
    start: int,
    end: int | None,
    boid_col: str,
    holder_col: str | None = None,
) -> Iterator[BoidRow]:
    """Liest BOIDs (und optional Inhabernamen) aus der Arbeitsmappe."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)
    normalised_boid_col = _normalise_column(boid_col)
    if not normalised_boid_col:
        raise ValueError("Spalte für BOIDs muss angegeben werden")

    stop = (
        end
        if end is not None
        else _find_last_row_with_value(worksheet, normalised_boid_col, start)
    )
    sheet_label = sheet or worksheet.title

    LOGGER.info("Lese Zeilen %s-%s aus Blatt '%s' (%s)", start, stop, sheet_label, excel_path)

    def _generator() -> Iterator[BoidRow]:
        yielded = 0
        if stop < start:
            LOGGER.info("Keine Datenzeilen in Blatt '%s' (%s) gefunden", sheet_label, excel_path)
            return

        for row_idx in range(start, stop + 1):
            boid = _normalise_boid(_read_cell(worksheet, normalised_boid_col, row_idx))
            if boid is None:
                continue
            yielded += 1
            yield BoidRow(
                index=row_idx,
                boid=boid,
                holder=_cell_to_string(_read_cell(worksheet, holder_col, row_idx)),
            )

        LOGGER.info(
            "Verarbeitete Zeilen in Blatt '%s' (%s): %s",
            sheet_label,
            excel_path,
            yielded,
        )

    return _generator()


def _cell_value(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return value


def write_result(
    excel_path: str,
    sheet: str | None,
    row_index: int,
    result: CheckResult,
    mapping: Mapping[str, str],
) -> None:
    """Schreibt Felder aus *result* in die gemappten Spalten."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)

    LOGGER.debug("Schreibe Ergebnis für Zeile %s (%s)", row_index, excel_path)

    record = result.to_dict()
    for key, column in mapping.items():
        column_letter = _normalise_column(column)
        if not column_letter or key not in record:
            continue
        worksheet[f"{column_letter}{row_index}"] = _cell_value(record[key])


def save(excel_path: str) -> None:
    """Persistiert Änderungen auf die Festplatte."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Keine Arbeitsmappe im Cache für Pfad: %s", excel_path)
        return
    LOGGER.info("Speichere Arbeitsmappe: %s", excel_path)
    workbook.save(excel_path)


def reset() -> None:
    """Leert den Arbeitsmappen-Cache (hauptsächlich für Tests)."""

    LOGGER.debug("Leere Arbeitsmappen-Cache")
    _WORKBOOK_CACHE.clear()


__all__ = ["BoidRow", "iter_boid_rows", "reset", "save", "write_result"]
