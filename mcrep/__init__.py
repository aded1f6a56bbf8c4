"""Reputation sync client for Minecraft server ban lists.

Signs ban reports with a local OpenPGP key and submits them to a shared
reputation service, keeping a local dedup ledger of what was already sent.
"""

__version__ = "0.1.0"
