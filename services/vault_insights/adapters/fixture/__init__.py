from .vault_fixture import VaultFixtureSource

__all__ = ["VaultFixtureSource"]
