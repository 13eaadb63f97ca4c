"""Social Card Vault: scored social snapshots minted as trading cards."""

__version__ = "0.1.0"
