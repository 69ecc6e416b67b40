from .vault_api import VaultApiSource

__all__ = ["VaultApiSource"]
