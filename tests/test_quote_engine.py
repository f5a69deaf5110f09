"""
Test Quote Engine
=================
Testy pełnego przebiegu wyceny:
1. Wycena referencyjna (1 arkusz 2000x1250)
2. Powtarzalność (identyczny JSON i hash)
3. Zmiana trybu rozliczenia nie zmienia rozkroju
4. Ostrzeżenia
5. Ścisłe parsowanie BOM, konfiguracja, uruchomienie z linii poleceń
"""

import sys
import os
import json
import logging

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import BOMFormatError, InvalidFieldValueError
from quotations.bom import BOM, FlatPart, Orientation
from quotations.config import (
    DEFAULT_CONFIG_PATH,
    create_nesting_from_config,
    create_policies_from_config,
    create_rules_from_config,
    create_tables_from_config,
    load_config,
    save_config,
)
from quotations.pricing.pricing_tables import (
    NestingParameters,
    PricingRules,
    SheetCostMode,
    SheetPolicy,
    SheetSelection,
    default_pricing_tables,
)
from quotations.quote_engine import QuoteEngine
from quotations.quote_warnings import WarningCode

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


REFERENCE_BOM = {
    "flat_parts": [
        {"id": "P1", "label": "Tampo", "width_mm": 1500, "height_mm": 700, "quantity": 1,
         "material": "INOX304", "thickness_mm": 1.0, "family": "bancada"},
        {"id": "P2", "label": "Espelho", "width_mm": 1500, "height_mm": 100, "quantity": 1,
         "material": "INOX304", "thickness_mm": 1.0, "family": "bancada",
         "orientation": "align_with_length"},
        {"id": "P3", "label": "Reforço", "width_mm": 674, "height_mm": 50, "quantity": 2,
         "material": "INOX304", "thickness_mm": 1.0, "family": "bancada", "category": "reforco"},
    ],
    "tubes": [
        {"id": "PE", "meters": 3.2, "profile_key": "TQ-40x40x1.2", "material": "INOX304",
         "family": "bancada"},
    ],
    "accessories": [{"sku": "PE-NIV-38", "quantity": 4, "description": "Pé nivelador"}],
    "processes": [
        {"kind": "cut", "minutes": 20},
        {"kind": "weld", "minutes": 45, "description": "Solda TIG"},
    ],
}


def make_engine(markup=3.0, min_utilization=40.0):
    return QuoteEngine(
        default_pricing_tables(),
        PricingRules(markup=markup, min_margin_pct=0.25, min_utilization_pct=min_utilization),
        NestingParameters(cutting_margin_mm=10),
    )


def test_reference_quote():
    print("\n=== TEST: Reference quote ===")
    bom = BOM.from_dict(REFERENCE_BOM)
    result = make_engine().quote(bom, {"bancada": SheetPolicy.manual("CH-2000x1250")})

    assert result.nesting.total_sheets == 1
    group = result.groups[0]
    assert group.sheet.id == "CH-2000x1250"
    assert group.placed_count == 4
    assert group.utilization_pct > 40.0

    # 1 arkusz × 2.5 m2 × 1 mm × 7900 kg/m3 × 45 PLN/kg
    assert result.costs.sheet == pytest.approx(888.75)
    assert result.costs.tube == pytest.approx(3.2 * 1.47 * 45)
    assert result.costs.accessory == pytest.approx(50.0)
    assert result.costs.process == pytest.approx(40.0 + 105.0)
    subtotal = 888.75 + 3.2 * 1.47 * 45 + 50.0 + 145.0
    assert result.costs.cost_base == pytest.approx(subtotal * 1.10)
    assert result.costs.price_suggested == pytest.approx(subtotal * 1.10 * 3)
    assert result.warnings == []
    print(result.summary())


def test_quote_is_deterministic():
    bom = BOM.from_dict(REFERENCE_BOM)
    policies = {"bancada": SheetPolicy.auto()}

    first = make_engine().quote(bom, policies)
    second = make_engine().quote(BOM.from_dict(REFERENCE_BOM), dict(policies))

    assert first.to_json() == second.to_json()
    assert first.snapshot_hash == second.snapshot_hash
    assert len(first.snapshot_hash) == 64
    assert json.loads(first.to_json())["snapshot_hash"] == first.snapshot_hash


def test_cost_mode_changes_only_sheet_cost():
    bom = BOM.from_dict(REFERENCE_BOM)
    bought = make_engine().quote(bom, {"bancada": SheetPolicy.auto()})
    used = make_engine().quote(bom, {"bancada": SheetPolicy.auto(
        SheetCostMode.USED_WITH_SCRAP, scrap_fraction=0.15)})

    g_bought, g_used = bought.groups[0], used.groups[0]
    assert [s.to_dict() for s in g_bought.sheets] == [s.to_dict() for s in g_used.sheets]
    assert g_bought.sheet == g_used.sheet
    assert g_bought.weight_kg == pytest.approx(g_used.weight_kg)

    assert g_used.sheet_cost == pytest.approx(g_used.weight_kg * 1.15 * 45)
    assert g_bought.sheet_cost != pytest.approx(g_used.sheet_cost)
    assert bought.costs.tube == pytest.approx(used.costs.tube)
    assert bought.costs.process == pytest.approx(used.costs.process)
    assert [w.code for w in used.warnings] == [WarningCode.USED_MODE]


def test_groups_use_their_family_policy():
    data = json.loads(json.dumps(REFERENCE_BOM))
    data["flat_parts"].append({"id": "C1", "width_mm": 500, "height_mm": 400, "quantity": 1,
                               "material": "INOX304", "thickness_mm": 0.8, "family": "cuba"})
    result = make_engine(min_utilization=0).quote(BOM.from_dict(data), {
        "bancada": SheetPolicy.manual("CH-3000x1250"),
        "cuba": SheetPolicy.auto(SheetCostMode.USED_WITH_SCRAP, scrap_fraction=0.2),
    })

    keys = [g.key.label for g in result.groups]
    assert keys == ["bancada|INOX304|1", "cuba|INOX304|0.8"]
    assert result.groups[0].sheet.id == "CH-3000x1250"
    assert result.groups[0].cost_mode is SheetCostMode.BOUGHT_WHOLE
    assert result.groups[1].cost_mode is SheetCostMode.USED_WITH_SCRAP


def test_warnings_are_informational():
    bom = BOM(flat_parts=(
        FlatPart("S1", "Small", 200, 200, 1, "INOX304", 1.0, "cuba"),
        FlatPart("S0", "Skipped", 200, 200, 0, "INOX304", 1.0, "cuba"),
    ))
    result = make_engine(markup=1.0, min_utilization=60.0).quote(bom, {})
    codes = [w.code for w in result.warnings]

    assert WarningCode.PART_DROPPED in codes
    assert WarningCode.DEFAULT_POLICY in codes
    assert WarningCode.LOW_UTILIZATION in codes
    assert WarningCode.PRICE_AT_FLOOR in codes
    assert result.costs.price_suggested == pytest.approx(result.costs.price_min_safe)
    assert result.groups[0].placed_count == 1


# ============================================================
# BOM parsing
# ============================================================

def test_bom_rejects_unknown_and_missing_keys():
    part = dict(REFERENCE_BOM["flat_parts"][0])
    part["colour"] = "red"
    with pytest.raises(BOMFormatError) as exc_info:
        BOM.from_dict({"flat_parts": [part]})
    assert exc_info.value.details["unknown"] == ["colour"]

    part = dict(REFERENCE_BOM["flat_parts"][0])
    del part["material"]
    with pytest.raises(BOMFormatError) as exc_info:
        BOM.from_dict({"flat_parts": [part]})
    assert exc_info.value.details["missing"] == ["material"]

    with pytest.raises(BOMFormatError):
        BOM.from_dict({"sheet_parts": []})


def test_bom_rejects_bad_enum_values():
    with pytest.raises(InvalidFieldValueError):
        BOM.from_dict({"processes": [{"kind": "paint", "minutes": 5}]})
    part = dict(REFERENCE_BOM["flat_parts"][0], orientation="diagonal")
    with pytest.raises(InvalidFieldValueError):
        BOM.from_dict({"flat_parts": [part]})


NUMERIC_FIELDS = [
    ("accessories", {"sku": "PE-NIV-38", "quantity": 4}, "quantity"),
    ("tubes", {"id": "T1", "meters": 2.0, "profile_key": "TQ-25x25x1.2",
               "material": "INOX304", "family": "bancada"}, "meters"),
    ("angles", {"id": "A1", "meters": 1.0, "profile_key": "L-30x30x3",
                "material": "INOX304", "family": "bancada"}, "meters"),
    ("processes", {"kind": "weld", "minutes": 30}, "minutes"),
    ("flat_parts", dict(REFERENCE_BOM["flat_parts"][0]), "quantity"),
    ("flat_parts", dict(REFERENCE_BOM["flat_parts"][0]), "width_mm"),
]


def test_bom_rejects_non_finite_numbers():
    for section, record, key in NUMERIC_FIELDS:
        for bad_value in ["nan", float("nan"), float("inf"), "-inf"]:
            with pytest.raises(InvalidFieldValueError):
                BOM.from_dict({section: [dict(record, **{key: bad_value})]})


def test_bom_rejects_fractional_quantity():
    part = dict(REFERENCE_BOM["flat_parts"][0], quantity=2.7)
    with pytest.raises(InvalidFieldValueError) as exc_info:
        BOM.from_dict({"flat_parts": [part]})
    assert exc_info.value.details["field"] == "flat_part.quantity"

    part = dict(REFERENCE_BOM["flat_parts"][0], quantity=3.0)
    assert BOM.from_dict({"flat_parts": [part]}).flat_parts[0].quantity == 3


def test_bom_parsing():
    bom = BOM.from_dict(REFERENCE_BOM)
    assert bom.flat_parts[1].orientation is Orientation.ALIGN_WITH_LENGTH
    assert bom.flat_parts[2].category == "reforco"
    assert bom.families == ("bancada",)
    assert bom.to_dict()["flat_parts"][0]["width_mm"] == 1500.0


# ============================================================
# Configuration and command line
# ============================================================

def test_default_config():
    config = load_config(DEFAULT_CONFIG_PATH)
    tables = create_tables_from_config(config)
    rules = create_rules_from_config(config)
    nesting = create_nesting_from_config(config)
    policies = create_policies_from_config(config)

    assert [s.id for s in tables.sheet_catalog] == ["CH-2000x1250", "CH-3000x1250", "CH-1500x1250"]
    assert tables.density_kg_m3 == 7900
    assert rules.min_margin_pct == 0.25
    assert nesting.cutting_margin_mm == 5.0
    assert policies["cuba"].cost_mode is SheetCostMode.USED_WITH_SCRAP
    assert policies["cuba"].scrap_fraction == 0.15
    assert policies["bancada"].selection is SheetSelection.AUTO


def test_save_and_load_config(tmp_path):
    path = tmp_path / "quote_config.json"
    config = load_config(DEFAULT_CONFIG_PATH)
    config["pricing_rules"]["markup"] = 2.5
    save_config(config, str(path))

    assert create_rules_from_config(load_config(str(path))).markup == 2.5
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.json"))


def test_command_line_quote(tmp_path):
    from main import main, EXIT_OK, EXIT_REJECTED

    bom_path = tmp_path / "bom.json"
    bom_path.write_text(json.dumps(REFERENCE_BOM), encoding="utf-8")
    out_path = tmp_path / "quote.json"

    assert main([str(bom_path), "-o", str(out_path)]) == EXIT_OK
    output = json.loads(out_path.read_text(encoding="utf-8"))
    assert output["nesting"]["total_sheets"] == 1
    assert len(output["snapshot_hash"]) == 64

    bad = json.loads(json.dumps(REFERENCE_BOM))
    bad["flat_parts"][0]["width_mm"] = 0
    bom_path.write_text(json.dumps(bad), encoding="utf-8")
    assert main([str(bom_path), "-o", str(out_path)]) == EXIT_REJECTED
    output = json.loads(out_path.read_text(encoding="utf-8"))
    assert output["valid"] is False
    assert output["issues"][0]["field"] == "flat_part:P1"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
