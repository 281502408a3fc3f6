"""Command execution for opchat."""
