"""Clients for external providers and notification dispatch"""
