"""
Excel Price Importer
====================
Import cenników z plików XLSX do PricingTables.

Skoroszyt może zawierać arkusze (nazwy bez rozróżniania wielkości liter):
- materials   : kod materiału + cena/kg
- tubes       : klucz profilu + kg/m
- angles      : klucz profilu + kg/m
- accessories : SKU + cena jednostkowa
- processes   : rodzaj procesu + koszt/h
- catalog     : id, szerokość, wysokość, opis formatu

Missing sheets are skipped. Rows that cannot be parsed are reported in the
error list and do not stop the import.

Użycie:
    importer = PriceSheetImporter()
    result = importer.read_workbook("cenniki.xlsx")
    tables = importer.apply_to_tables(default_pricing_tables(), result)
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import openpyxl

from quotations.pricing.pricing_tables import PricingTables, SheetCatalogEntry

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Wynik importu"""
    tables: Dict[str, Dict[str, float]] = field(default_factory=dict)
    catalog: List[SheetCatalogEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def imported(self) -> int:
        return sum(len(t) for t in self.tables.values()) + len(self.catalog)


class PriceSheetImporter:
    """Importer cenników z plików Excel"""

    # Nazwa arkusza -> pole PricingTables
    TABLE_SHEETS = {
        'material_price_per_kg': ['materials', 'material', 'materiais', 'materiały'],
        'tube_kg_per_meter': ['tubes', 'tube', 'tubos', 'rury'],
        'angle_kg_per_meter': ['angles', 'angle', 'cantoneiras', 'kątowniki'],
        'accessory_unit_price': ['accessories', 'accessory', 'acessorios', 'akcesoria'],
        'process_cost_per_hour': ['processes', 'process', 'processos', 'procesy'],
    }
    CATALOG_SHEETS = ['catalog', 'sheets', 'chapas', 'arkusze']

    # Mapowanie nagłówków Excel na pola
    TABLE_HEADERS = {
        'key': ['key', 'code', 'codigo', 'código', 'sku', 'material', 'profile',
                'kind', 'kod', 'materiał', 'profil'],
        'value': ['value', 'price', 'cost', 'custo', 'cena', 'price_per_kg', 'kg_m',
                  'kg/m', 'rate', 'cost_per_hour', 'pln/kg', 'pln/h'],
        'description': ['description', 'descricao', 'descrição', 'opis', 'note'],
    }
    CATALOG_HEADERS = {
        'id': ['id', 'code', 'codigo', 'kod'],
        'width_mm': ['width_mm', 'width', 'w', 'comprimento', 'długość'],
        'height_mm': ['height_mm', 'height', 'h', 'largura', 'szerokość'],
        'label': ['label', 'description', 'descricao', 'opis'],
    }

    def read_workbook(self, filepath: str | Path) -> ImportResult:
        """Wczytaj wszystkie rozpoznane arkusze skoroszytu"""
        result = ImportResult()
        filepath = Path(filepath)
        if not filepath.exists():
            result.errors.append(f"File not found: {filepath}")
            return result

        wb = openpyxl.load_workbook(filepath, data_only=True, read_only=True)
        try:
            sheets = {ws.title.strip().lower(): ws for ws in wb.worksheets}

            for table_name, names in self.TABLE_SHEETS.items():
                ws = self._find_sheet(sheets, names)
                if ws is None:
                    continue
                records, errors = self.read_table(ws)
                result.tables[table_name] = records
                result.errors += [f"{ws.title}: {e}" for e in errors]

            ws = self._find_sheet(sheets, self.CATALOG_SHEETS)
            if ws is not None:
                entries, errors = self.read_catalog(ws)
                result.catalog = entries
                result.errors += [f"{ws.title}: {e}" for e in errors]
        finally:
            wb.close()

        logger.info(f"Read {result.imported} price records from {filepath.name}, "
                    f"{len(result.errors)} errors")
        return result

    def read_table(self, ws) -> Tuple[Dict[str, float], List[str]]:
        """
        Wczytaj tabelę klucz -> wartość.

        Returns:
            Tuple[records, errors]
        """
        records: Dict[str, float] = {}
        errors: List[str] = []
        rows = list(ws.iter_rows(values_only=True))
        if not rows:
            return records, errors

        header_map = self._find_headers(rows[0], self.TABLE_HEADERS)
        if 'key' not in header_map or 'value' not in header_map:
            errors.append("Missing required columns: key, value")
            return records, errors

        for row_idx, row in enumerate(rows[1:], start=2):
            key = self._cell(row, header_map['key'])
            if key is None or str(key).strip() == "":
                continue
            value = self._cell(row, header_map['value'])
            try:
                records[str(key).strip()] = float(value)
            except (TypeError, ValueError):
                errors.append(f"Row {row_idx}: invalid value {value!r} for {key}")

        return records, errors

    def read_catalog(self, ws) -> Tuple[List[SheetCatalogEntry], List[str]]:
        """Wczytaj katalog formatów arkuszy"""
        entries: List[SheetCatalogEntry] = []
        errors: List[str] = []
        rows = list(ws.iter_rows(values_only=True))
        if not rows:
            return entries, errors

        header_map = self._find_headers(rows[0], self.CATALOG_HEADERS)
        missing = [c for c in ('id', 'width_mm', 'height_mm') if c not in header_map]
        if missing:
            errors.append(f"Missing required columns: {', '.join(missing)}")
            return entries, errors

        for row_idx, row in enumerate(rows[1:], start=2):
            sheet_id = self._cell(row, header_map['id'])
            if sheet_id is None or str(sheet_id).strip() == "":
                continue
            try:
                entries.append(SheetCatalogEntry.from_dict({
                    'id': str(sheet_id).strip(),
                    'width_mm': self._cell(row, header_map['width_mm']),
                    'height_mm': self._cell(row, header_map['height_mm']),
                    'label': self._cell(row, header_map.get('label')),
                }))
            except (TypeError, ValueError):
                errors.append(f"Row {row_idx}: invalid dimensions for sheet {sheet_id}")

        return entries, errors

    def apply_to_tables(self, tables: PricingTables, result: ImportResult) -> PricingTables:
        """Nowe PricingTables: zaimportowane wartości nadpisują istniejące"""
        changes = {}
        for table_name, records in result.tables.items():
            merged = dict(getattr(tables, table_name))
            merged.update(records)
            changes[table_name] = merged
        if result.catalog:
            changes['sheet_catalog'] = tuple(result.catalog)
        return replace(tables, **changes)

    @staticmethod
    def _find_sheet(sheets: Dict, names: List[str]):
        for name in names:
            if name in sheets:
                return sheets[name]
        return None

    @staticmethod
    def _find_headers(header_row, header_mapping: Dict) -> Dict[str, int]:
        """Znajdź mapowanie nagłówków na indeksy kolumn (od 0)"""
        result = {}
        for col_idx, header in enumerate(header_row):
            if header is None:
                continue
            header_lower = str(header).lower().strip()
            for field_name, possible_names in header_mapping.items():
                if field_name not in result and header_lower in possible_names:
                    result[field_name] = col_idx
                    break
        logger.debug(f"Header mapping: {result}")
        return result

    @staticmethod
    def _cell(row, col_idx: Optional[int]):
        if col_idx is None or col_idx >= len(row):
            return None
        return row[col_idx]
