"""
Backend API package initialization.

Router modules:
- sales: sale analysis, history and search
"""

from sale_attribution.api.sales import router as sales_router

__all__ = [
    "sales_router",
]
