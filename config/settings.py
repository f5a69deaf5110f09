#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Konfiguracja silnika wyceny
Nesting & Costing Engine dla blach i profili

Wartości domyślne można nadpisać w pliku .env lub zmiennymi środowiskowymi.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Wczytaj zmienne środowiskowe z .env
load_dotenv()

# ============================================================
# NESTING - PARAMETRY PAKOWANIA
# ============================================================

# Odstęp technologiczny (kerf + krawędź) w mm, rezerwowany przy każdej krawędzi
# arkusza i pomiędzy detalami
NESTING_CUTTING_MARGIN_MM = float(os.getenv("NESTING_CUTTING_MARGIN_MM", "5.0"))

# Próg wykorzystania arkusza (%) poniżej którego wycena dostaje ostrzeżenie
NESTING_MIN_UTILIZATION_PCT = float(os.getenv("NESTING_MIN_UTILIZATION_PCT", "60.0"))

# ============================================================
# MATERIAŁ
# ============================================================

# Gęstość stali nierdzewnej [kg/m3]
DEFAULT_DENSITY_KG_M3 = float(os.getenv("DEFAULT_DENSITY_KG_M3", "7900"))

# ============================================================
# KONFIGURACJA / LOGOWANIE
# ============================================================

# Plik konfiguracji cenników (None = quotations/config/default_config.json)
QUOTE_CONFIG_PATH = os.getenv("QUOTE_CONFIG_PATH")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Precyzja zaokrągleń kwot w wyniku (miejsca po przecinku)
MONEY_DECIMALS = int(os.getenv("MONEY_DECIMALS", "2"))


def get_config_path() -> Path:
    """
    Zwróć ścieżkę pliku konfiguracji wyceny.

    Returns:
        Path z QUOTE_CONFIG_PATH lub domyślny plik pakietu
    """
    if QUOTE_CONFIG_PATH:
        return Path(QUOTE_CONFIG_PATH)
    return Path(__file__).parent.parent / "quotations" / "config" / "default_config.json"
