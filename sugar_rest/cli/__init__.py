"""Command line interface for the SugarCRM REST client."""
