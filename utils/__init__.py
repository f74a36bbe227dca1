"""
Shared helpers for the Excel record uploader: the Result type, error
taxonomy, cell coercion, sanitization, field validation, .xlsx format
checks and logging setup.
"""
