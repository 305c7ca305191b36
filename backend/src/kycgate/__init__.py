"""
kycgate - Identity and document verification gateway.

Aggregates PAN/GST validators and OCR vendors behind one call surface,
walking a provider fallback chain and normalizing every answer into a
single canonical result.
"""

__version__ = "0.1.0"
