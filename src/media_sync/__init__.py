"""Listing media synchronization service."""
