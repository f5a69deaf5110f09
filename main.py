#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quote Engine - Nesting & Costing
Główny plik uruchomieniowy

Uruchomienie:
    python main.py bom.json                      # Wycena z domyślną konfiguracją
    python main.py bom.json --config cfg.json    # Własne cenniki i reguły
    python main.py bom.json --prices ceny.xlsx   # Nadpisz cenniki z Excela
    python main.py bom.json --policies pol.json  # Polityki arkuszy per rodzina
    python main.py bom.json --validate           # Tylko walidacja
    python main.py bom.json -o wynik.json        # Zapis wyniku do pliku
"""

import sys
import json
import argparse
import logging
from pathlib import Path

from config.settings import LOG_LEVEL, LOG_FORMAT
from core.exceptions import QuoteEngineError, QuoteRejectedError
from quotations.bom import BOM
from quotations.config import (
    load_config,
    create_tables_from_config,
    create_rules_from_config,
    create_nesting_from_config,
    create_policies_from_config,
)
from quotations.pricing.pricing_tables import policies_from_dict
from quotations.pricing.xlsx_importer import PriceSheetImporter
from quotations.quote_engine import QuoteEngine

# Konfiguracja logowania
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_REJECTED = 2


def read_json(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def build_engine(args) -> tuple:
    """Zbuduj silnik i polityki z konfiguracji + opcjonalnego Excela"""
    config = load_config(args.config)
    tables = create_tables_from_config(config)

    if args.prices:
        importer = PriceSheetImporter()
        imported = importer.read_workbook(args.prices)
        for error in imported.errors:
            logger.warning(f"Price import: {error}")
        tables = importer.apply_to_tables(tables, imported)
        logger.info(f"✓ Imported {imported.imported} price records from {args.prices}")

    engine = QuoteEngine(tables, create_rules_from_config(config), create_nesting_from_config(config))

    if args.policies:
        policies = policies_from_dict(read_json(args.policies))
    else:
        policies = create_policies_from_config(config)
    return engine, policies


def write_output(text: str, output: str = None):
    if output:
        Path(output).write_text(text, encoding='utf-8')
        logger.info(f"Saved: {output}")
    else:
        print(text)


def main(argv=None):
    """Główna funkcja"""
    parser = argparse.ArgumentParser(description="Quote Engine - nesting & costing")
    parser.add_argument('bom', help='Plik JSON z listą materiałową (BOM)')
    parser.add_argument('--config', help='Plik konfiguracji cenników i reguł (JSON)')
    parser.add_argument('--prices', help='Skoroszyt XLSX z cennikami (nadpisuje konfigurację)')
    parser.add_argument('--policies', help='Plik JSON z politykami arkuszy {rodzina: polityka}')
    parser.add_argument('--validate', action='store_true', help='Tylko walidacja, bez wyceny')
    parser.add_argument('-o', '--output', help='Plik wynikowy JSON')
    parser.add_argument('--debug', action='store_true', help='Tryb debug (więcej logów)')

    args = parser.parse_args(argv)

    # Tryb debug
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        engine, policies = build_engine(args)
        bom = BOM.from_dict(read_json(args.bom))
    except (OSError, ValueError, QuoteEngineError) as e:
        print(f"❌ Błąd danych wejściowych: {e}")
        return EXIT_ERROR

    if args.validate:
        issues = engine.validate(bom, policies)
        write_output(json.dumps({'valid': not issues, 'issues': [i.to_dict() for i in issues]},
                                indent=2, ensure_ascii=False), args.output)
        return EXIT_OK if not issues else EXIT_REJECTED

    try:
        result = engine.quote(bom, policies)
    except QuoteRejectedError as e:
        write_output(json.dumps({'valid': False, 'issues': [i.to_dict() for i in e.issues]},
                                indent=2, ensure_ascii=False), args.output)
        return EXIT_REJECTED

    logger.info("\n" + result.summary())
    write_output(result.to_json(), args.output)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
