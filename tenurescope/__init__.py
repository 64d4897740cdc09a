"""
Member tenure analysis for company people directories.

This package turns a paginated, noisy member directory view into normalized
tenure records and summary statistics. The pipeline reads only from an
injected document view (see ``tenurescope.view``); persistence, export and
browser control live in separate modules.
"""
