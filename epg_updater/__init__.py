"""Grabbed EPG listing reconciliation service."""
