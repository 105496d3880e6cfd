"""Startup directory with Firecrawl website scraping and SSE progress."""
