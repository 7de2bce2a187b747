from ._base_client import BaseClient

__all__ = ["BaseClient"]
