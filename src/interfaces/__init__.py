"""Abstract provider interfaces (ports) for the CD scan service.

Concrete adapters live in ``src/providers/``; services and the pipeline
depend only on these contracts.
"""

from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.scan_store import IScanStore

__all__ = [
    "ICatalogProvider",
    "ILLMProvider",
    "IScanStore",
]
