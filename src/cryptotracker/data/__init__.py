"""Data access layer: models and the Supabase-backed cache store."""
