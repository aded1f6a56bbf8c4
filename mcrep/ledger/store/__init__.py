"""Local files and remote transport for the ledger."""
