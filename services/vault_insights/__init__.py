"""Vault insights service: activity insights and P&L attribution for vault positions."""
