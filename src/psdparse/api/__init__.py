"""
High-level API: output image assembly, PNG writing and file processing.
"""
