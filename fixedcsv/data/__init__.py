"""
Schemas, streaming reader and writer, and file/DataFrame helpers.

Handles reading and writing fixed-schema lines with header validation and
strict field-count enforcement.
"""
