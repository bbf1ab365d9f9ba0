"""Supabase data access layer."""

from cryptotracker.data.supabase.client import SupabaseClient

__all__ = ["SupabaseClient"]
