"""Document-scraping adapters, one module per site markup shape."""
