"""Library Inventory - Utilities Package

- Field validation rules (validators.py)
- CLI output helpers (ui_helpers.py)
"""
