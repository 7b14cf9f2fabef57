"""
Configuration for the tabular ingest stage
Simple and focused: how a line is split into fields
"""

# Separator between fields on a line (no quoting support)
FIELD_SEPARATOR = ","

# Separator between lines of the uploaded text
LINE_SEPARATOR = "\n"
