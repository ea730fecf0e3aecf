"""
Docform Kernel

Foundation layer for the document totals engine:
- Structured JSON logging
- Typed exceptions with machine-readable codes
- Immutable value objects for line items, headers and totals
- Safe numeric coercion (never raises)
- Injectable scheduling for debounced recomputation
"""

__version__ = "0.1.0"
