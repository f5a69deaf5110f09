"""
Test Excel Price Importer
=========================
Import cenników i katalogu arkuszy z XLSX.
"""

import sys
import os
import logging

import openpyxl
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quotations.pricing.pricing_tables import default_pricing_tables
from quotations.pricing.xlsx_importer import PriceSheetImporter

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@pytest.fixture
def price_workbook(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Materials"
    ws.append(["Code", "Price", "Description"])
    ws.append(["INOX304", 52.0, "AISI 304"])
    ws.append(["S235", 6.5, "Stal czarna"])
    ws.append(["INOX316", "na zapytanie", None])
    ws.append([None, None, None])

    ws = wb.create_sheet("tubes")
    ws.append(["profile", "kg/m"])
    ws.append(["TQ-50x50x1.5", 2.3])

    ws = wb.create_sheet("catalog")
    ws.append(["id", "width", "height", "label"])
    ws.append(["CH-2500x1250", 2500, 1250, "2500 x 1250"])
    ws.append(["CH-3000x1500", 3000, 1500, None])

    ws = wb.create_sheet("Notes")
    ws.append(["ignored"])

    path = tmp_path / "cenniki.xlsx"
    wb.save(path)
    return path


def test_read_workbook(price_workbook):
    result = PriceSheetImporter().read_workbook(price_workbook)

    assert result.tables['material_price_per_kg'] == {"INOX304": 52.0, "S235": 6.5}
    assert result.tables['tube_kg_per_meter'] == {"TQ-50x50x1.5": 2.3}
    assert [s.id for s in result.catalog] == ["CH-2500x1250", "CH-3000x1500"]
    assert result.catalog[1].width_mm == 3000
    assert result.imported == 5
    assert len(result.errors) == 1
    assert "Row 4" in result.errors[0]
    assert not result.success


def test_apply_overrides_and_keeps_other_values(price_workbook):
    importer = PriceSheetImporter()
    base = default_pricing_tables()
    tables = importer.apply_to_tables(base, importer.read_workbook(price_workbook))

    assert tables.price_per_kg("INOX304") == 52.0
    assert tables.price_per_kg("S235") == 6.5
    assert tables.price_per_kg("INOX430") == 32.0
    assert tables.tube_weight_per_meter("TQ-25x25x1.2") == 0.90
    assert [s.id for s in tables.sheet_catalog] == ["CH-2500x1250", "CH-3000x1500"]
    assert tables.accessory_unit_price == base.accessory_unit_price
    assert base.price_per_kg("INOX304") == 45.0


def test_missing_columns_reported(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "processes"
    ws.append(["kind", "comment"])
    ws.append(["weld", "no rate"])
    path = tmp_path / "bad.xlsx"
    wb.save(path)

    result = PriceSheetImporter().read_workbook(path)

    assert result.imported == 0
    assert result.errors == ["processes: Missing required columns: key, value"]


def test_missing_file(tmp_path):
    result = PriceSheetImporter().read_workbook(tmp_path / "none.xlsx")
    assert not result.success
    assert result.errors[0].startswith("File not found")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
