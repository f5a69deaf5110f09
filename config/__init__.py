"""Ustawienia środowiskowe silnika wyceny (patrz settings.py)."""
